"""Minimal dependency injection container.

Services are registered by name with a factory, built lazily on first access,
and cached per container. Containers chain to a parent for fallback lookup, so
a child can override any service without touching the parent.

Exports:
- `Container`: registry + cache + parent fallback.
- `RootContainer`: terminator of every parent chain; all lookups fail.
- `ServiceCache`: per-container cache with compute-if-absent.
- `MissingServiceError`, `DuplicateServiceError`, `EnvironmentVariableNotFound`:
  the container's error kinds, all subclasses of `ContainerError`.
"""

from ._cache import ServiceCache
from ._container import (
    Container,
    ContainerError,
    DuplicateServiceError,
    EnvironmentVariableNotFound,
    MissingServiceAttributeError,
    MissingServiceError,
    RootContainer,
)


__all__ = [
    "Container",
    "ContainerError",
    "DuplicateServiceError",
    "EnvironmentVariableNotFound",
    "MissingServiceAttributeError",
    "MissingServiceError",
    "RootContainer",
    "ServiceCache",
]
