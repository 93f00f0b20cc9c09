"""Application cache – CacheBackend port."""
from __future__ import annotations

from typing import Any, Iterable, Mapping, Protocol, runtime_checkable

from cachepool.kernel.errors import BackendError
from cachepool.kernel.types import MISSING

__all__ = ["BulkOperationsMixin", "CacheBackend", "Entry"]

# (value, ttl seconds or None for indefinite)
Entry = tuple[Any, int | None]


@runtime_checkable
class CacheBackend(Protocol):
    """Port: the minimal key-value capability a pool is built on.

    Keys reaching a backend are already validated and namespaced.  Failures
    are raised as :class:`~cachepool.kernel.errors.BackendError`; a ``ttl`` of
    ``None`` stores indefinitely and a ``ttl <= 0`` stores nothing.
    """

    def get(self, key: str) -> Any: ...  # value or MISSING
    def set(self, key: str, value: Any, ttl: int | None) -> bool: ...
    def delete(self, key: str) -> bool: ...  # True even if the key was absent
    def has(self, key: str) -> bool: ...
    def get_multiple(self, keys: list[str]) -> dict[str, Any]: ...  # found keys only
    def set_multiple(self, entries: Mapping[str, Entry]) -> list[str]: ...  # failed keys
    def delete_multiple(self, keys: list[str]) -> list[str]: ...  # failed keys
    def purge(self, pattern: str | None) -> None: ...  # substring match, None = all


class BulkOperationsMixin:
    """Sequential bulk operations for backends without a native batch call."""

    def get_multiple(self, keys: Iterable[str]) -> dict[str, Any]:
        found: dict[str, Any] = {}
        for key in keys:
            value = self.get(key)  # type: ignore[attr-defined]
            if value is not MISSING:
                found[key] = value
        return found

    def set_multiple(self, entries: Mapping[str, Entry]) -> list[str]:
        failed: list[str] = []
        for key, (value, ttl) in entries.items():
            try:
                if not self.set(key, value, ttl):  # type: ignore[attr-defined]
                    failed.append(key)
            except BackendError:
                failed.append(key)
        return failed

    def delete_multiple(self, keys: Iterable[str]) -> list[str]:
        failed: list[str] = []
        for key in keys:
            try:
                if not self.delete(key):  # type: ignore[attr-defined]
                    failed.append(key)
            except BackendError:
                failed.append(key)
        return failed
