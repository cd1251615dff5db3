from __future__ import annotations

import inspect
import logging
import os
from typing import (
    TYPE_CHECKING,
    Any,
    TypeVar,
    overload,
)

from ._cache import ServiceCache


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Hashable, Mapping

    Factory = Callable[["Container"], Any]
    F = TypeVar("F", bound=Factory)


class ContainerError(Exception):
    pass


class MissingServiceError(ContainerError, LookupError):
    """No factory is registered for a name anywhere in the container chain.

    `names` holds every name that could not be found.
    """

    def __init__(self, msg: str, *, names: tuple[Hashable, ...] = ()) -> None:
        super().__init__(msg)
        self.names = names


class MissingServiceAttributeError(MissingServiceError, AttributeError):
    """Raised for member-style access (`container.logger`) of an unknown service."""


class DuplicateServiceError(ContainerError, ValueError):
    def __init__(self, msg: str, *, name: Hashable) -> None:
        super().__init__(msg)
        self.name = name


class EnvironmentVariableNotFound(ContainerError, LookupError):  # noqa: N818
    def __init__(self, msg: str, *, key: str, name: Hashable) -> None:
        super().__init__(msg)
        self.key = key
        self.name = name


class RootContainer:
    """Terminates every parent chain. Has no services, so every lookup fails."""

    parent = None

    def factory_for(self, name: Hashable) -> Factory:
        msg = f"Unknown service {name!r}"
        raise MissingServiceError(msg, names=(name,))

    def get(self, name: Hashable) -> Any:
        self.factory_for(name)

    def __repr__(self) -> str:
        return "<RootContainer>"


ROOT = RootContainer()


class Container:
    """Minimal DI container.

    - register named factories; each receives the container that `get` was called on
    - a service is built once per container and cached until `clear_cache()`
    - unknown names fall back to the parent container
    - services are also readable as attributes: `container.logger`.

    Example:
      container = Container()
      container.register("log_file", lambda c: "app.log")
      container.register("logger", lambda c: FileLogger(c.log_file))
      container.logger

    """

    def __init__(
        self,
        parent: Container | RootContainer | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._factories: dict[Hashable, Factory] = {}
        self._cache = ServiceCache()
        self._parent = parent if parent is not None else ROOT
        if environ is None and isinstance(parent, Container):
            environ = parent._environ  # noqa: SLF001
        self._environ = environ

    @property
    def parent(self) -> Container | RootContainer:
        return self._parent

    @property
    def environ(self) -> Mapping[str, str]:
        """Environment used by `register_env`; `os.environ` unless one was injected here or in a parent."""
        return self._environ if self._environ is not None else os.environ

    @overload
    def register(
        self,
        name: Hashable,
        factory: Factory,
        *,
        allow_duplicate: bool = False,
    ) -> None: ...

    @overload
    def register(
        self,
        name: Hashable,
        factory: None = ...,
        *,
        allow_duplicate: bool = False,
    ) -> Callable[[F], F]: ...

    def register(
        self,
        name: Hashable,
        factory: Factory | None = None,
        *,
        allow_duplicate: bool = False,
    ) -> Callable[[F], F] | None:
        """Register `factory` as the way to build the service `name`.

        Without `factory` this returns a decorator:

          @container.register("db")
          def make_db(c):
              return Database(c.db_url)

        Registering a name twice raises DuplicateServiceError unless `allow_duplicate`
        is set, in which case the factory is replaced and the cached value dropped.
        """
        if factory is None:

            def decorator(fn: F) -> F:
                self.register(name, fn, allow_duplicate=allow_duplicate)
                return fn

            return decorator

        if not callable(factory):
            msg = f"Factory for service {name!r} must be callable, got {type(factory).__name__}"
            raise TypeError(msg)

        if name in self._factories:
            if not allow_duplicate:
                msg = f"Duplicate service name {name!r}"
                raise DuplicateServiceError(msg, name=name)

            logger.debug("Replacing factory for service %r", name)
        else:
            logger.debug("Registering service %r", name)

        # A value cached from a previous factory (or a parent's) is stale now.
        self._cache.evict(name)
        self._factories[name] = factory
        return None

    @overload
    def override(self, name: Hashable, factory: Factory) -> None: ...

    @overload
    def override(self, name: Hashable, factory: None = ...) -> Callable[[F], F]: ...

    def override(self, name: Hashable, factory: Factory | None = None) -> Callable[[F], F] | None:
        """Register `factory` for `name`, replacing any local registration."""
        return self.register(name, factory, allow_duplicate=True)

    def register_env(self, name: Hashable, default: Any = None) -> None:
        """Bind `name` to the environment variable named `str(name).upper()`.

        Lookup order:
        1. environment value (registered as a string)
        2. `default`, when given
        3. an existing factory for `name` in a parent; nothing is registered
        4. EnvironmentVariableNotFound.
        """
        key = str(name).upper()
        value = self.environ.get(key)

        if value is not None:
            logger.debug("Service %r bound to environment variable %s", name, key)
            self.register(name, lambda _: value)
        elif default is not None:
            logger.debug("Service %r bound to default value (%s not set)", name, key)
            self.register(name, lambda _: default)
        else:
            try:
                self._parent.factory_for(name)
            except MissingServiceError as e:
                msg = (
                    f"Could not find an environment variable named '{key}' "
                    f"nor a service named {name!r} in the parent container"
                )
                raise EnvironmentVariableNotFound(msg, key=key, name=name) from e

    def get(self, name: Hashable) -> Any:
        """Return the service `name`, building and caching it on first access.

        The factory may come from a parent, but it is called with this container
        and the result is cached here.
        """
        return self._cache.get_or_create(name, lambda: self._create(name))

    def _create(self, name: Hashable) -> Any:
        factory = self.factory_for(name)
        logger.debug("Creating service %r", name)
        return factory(self)

    def __getitem__(self, name: Hashable) -> Any:
        return self.get(name)

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails.
        if name.startswith("_"):
            raise AttributeError(name)

        try:
            self.factory_for(name)
        except MissingServiceError:
            msg = f"Unknown service {name!r}"
            raise MissingServiceAttributeError(msg, names=(name,)) from None

        return self.get(name)

    def factory_for(self, name: Hashable) -> Factory:
        """Return the factory for `name` from this container or the nearest parent that has one.

        Never calls the factory.
        """
        try:
            return self._factories[name]
        except KeyError:
            return self._parent.factory_for(name)

    def clear_cache(self) -> None:
        """Drop every cached service in this container. Parents keep their caches."""
        logger.debug("Clearing %d cached service(s)", len(self._cache))
        self._cache.clear()

    def service_exists(self, name: Hashable) -> bool:
        """True if `name` is a registered service (here or in a parent) or a public attribute."""
        if self._has_accessor(name):
            return True

        try:
            self.factory_for(name)
        except MissingServiceError:
            return False
        else:
            return True

    def _has_accessor(self, name: Hashable) -> bool:
        if not isinstance(name, str) or name.startswith("_"):
            return False

        try:
            inspect.getattr_static(self, name)
        except AttributeError:
            return False
        else:
            return True

    def __contains__(self, name: Hashable) -> bool:
        return self.service_exists(name)

    def verify_dependencies(self, *names: Hashable) -> bool:
        return all(self.service_exists(name) for name in names)

    def verify_dependencies_or_fail(self, *names: Hashable) -> None:
        """Raise MissingServiceError listing every name in `names` that does not exist."""
        missing = tuple(name for name in names if not self.service_exists(name))

        if missing:
            msg = f"Missing dependencies {', '.join(str(name) for name in missing)}"
            raise MissingServiceError(msg, names=missing)

    def create_scope(self, *, environ: Mapping[str, str] | None = None) -> Container:
        """Create a child container that prefers its own registrations and falls back to this one."""
        return Container(self, environ=environ)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} services={len(self._factories)} cached={len(self._cache)}>"
