"""Application cache – SimpleCache, a flat key-value façade over a backend."""
from __future__ import annotations

from typing import Any, Iterable, Mapping

from cachepool.application.cache.backend import CacheBackend, Entry
from cachepool.application.cache.keys import KeyNamespace
from cachepool.application.cache.ttl import USE_DEFAULT, TtlLike, resolve_ttl
from cachepool.config.settings import CacheSettings
from cachepool.kernel.errors import BackendError
from cachepool.kernel.time import Clock, SystemClock
from cachepool.kernel.types import MISSING
from cachepool.observability.logging import get_logger

__all__ = ["SIMPLE_CACHE_FLAG", "SimpleCache"]

SIMPLE_CACHE_FLAG = "@simple_"

logger = get_logger(__name__)


class SimpleCache:
    """``get``/``set``/``delete`` by key, without items or deferred writes.

    ``ttl`` accepts anything :func:`resolve_ttl` does; ``None`` and
    ``USE_DEFAULT`` apply ``settings.default_ttl``.  A TTL that resolves to
    zero or less deletes the key instead of writing it.
    """

    def __init__(
        self,
        backend: CacheBackend,
        settings: CacheSettings | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._backend = backend
        self._settings = settings or CacheSettings()
        self._clock: Clock = clock or SystemClock()
        self._keys = KeyNamespace(SIMPLE_CACHE_FLAG, self._settings.namespace)

    def get(self, key: str, default: Any = None) -> Any:
        normalized = self._keys.normalize(key)
        try:
            value = self._backend.get(normalized)
        except BackendError as exc:
            self._backend_failed("get", exc, key=key)
            return default
        return default if value is MISSING else value

    def set(self, key: str, value: Any, ttl: TtlLike = USE_DEFAULT) -> bool:
        normalized = self._keys.normalize(key)
        seconds = self._ttl(ttl)
        try:
            if seconds is not None and seconds <= 0:
                return self._backend.delete(normalized)
            return self._backend.set(normalized, value, seconds)
        except BackendError as exc:
            self._backend_failed("set", exc, key=key)
            return False

    def delete(self, key: str) -> bool:
        normalized = self._keys.normalize(key)
        try:
            return self._backend.delete(normalized)
        except BackendError as exc:
            self._backend_failed("delete", exc, key=key)
            return False

    def clear(self) -> bool:
        try:
            self._backend.purge(self._keys.prefix)
        except BackendError as exc:
            self._backend_failed("purge", exc, prefix=self._keys.prefix)
            return False
        return True

    def has(self, key: str) -> bool:
        normalized = self._keys.normalize(key)
        try:
            return self._backend.has(normalized)
        except BackendError as exc:
            self._backend_failed("has", exc, key=key)
            return False

    def get_multiple(self, keys: Iterable[str], default: Any = None) -> dict[str, Any]:
        keys = list(keys)
        if not keys:
            return {}
        normalized = self._keys.normalize_many(keys)
        try:
            found = self._backend.get_multiple(list(dict.fromkeys(normalized)))
        except BackendError as exc:
            self._backend_failed("get_multiple", exc, keys=len(keys))
            found = {}
        return {key: found.get(norm, default) for key, norm in zip(keys, normalized)}

    def set_multiple(self, values: Mapping[str, Any], ttl: TtlLike = USE_DEFAULT) -> bool:
        if not values:
            return True
        seconds = self._ttl(ttl)
        normalized = {self._keys.normalize(key): value for key, value in values.items()}
        if seconds is not None and seconds <= 0:
            return self._delete_normalized(list(normalized))

        entries: dict[str, Entry] = {norm: (value, seconds) for norm, value in normalized.items()}
        try:
            failed = self._backend.set_multiple(entries)
        except BackendError as exc:
            self._backend_failed("set_multiple", exc, keys=len(entries))
            return False
        return not failed

    def delete_multiple(self, keys: Iterable[str]) -> bool:
        normalized = self._keys.normalize_many(keys)
        if not normalized:
            return True
        return self._delete_normalized(normalized)

    def _delete_normalized(self, normalized: list[str]) -> bool:
        try:
            failed = self._backend.delete_multiple(normalized)
        except BackendError as exc:
            self._backend_failed("delete_multiple", exc, keys=len(normalized))
            return False
        return not failed

    def _ttl(self, ttl: TtlLike) -> int | None:
        return resolve_ttl(ttl, self._settings.default_ttl, self._clock)

    def _backend_failed(self, operation: str, exc: BackendError, **context: Any) -> None:
        logger.warning(
            "cache.backend_error",
            operation=operation,
            backend=exc.backend,
            error=exc.message,
            **context,
        )
