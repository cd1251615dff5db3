from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Hashable


class ServiceCache:
    """Per-container store of resolved services.

    Presence is tracked by key, so `None` and other falsy values are cached like any other.
    `get_or_create` holds a reentrant lock while `create` runs: a factory may resolve
    other services through the same container on the same thread.
    """

    def __init__(self) -> None:
        self._values: dict[Hashable, Any] = {}
        self._lock = threading.RLock()

    def get_or_create(self, name: Hashable, create: Callable[[], Any]) -> Any:
        """Return the cached value for `name`, calling `create` and storing its result on a miss.

        Nothing is stored when `create` raises.
        """
        with self._lock:
            try:
                return self._values[name]
            except KeyError:
                pass

            value = create()
            self._values[name] = value
            return value

    def evict(self, name: Hashable) -> None:
        with self._lock:
            self._values.pop(name, None)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)
