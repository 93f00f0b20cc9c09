"""Application cache – ItemPool.

The pool turns a :class:`~cachepool.application.cache.backend.CacheBackend`
into an item-oriented cache with a deferred-write buffer::

    with ItemPool(InMemoryBackend(), CacheSettings(default_ttl=300)) as pool:
        item = pool.get_item("report.7")
        if not item.is_hit():
            pool.save_deferred(item.set(build_report()))
    # leaving the block commits whatever is still buffered

Backend failures never raise out of the pool: they are logged and reported
as ``False`` (or as a miss on reads).  Invalid keys raise
:class:`~cachepool.kernel.errors.InvalidKeyError` before the backend is touched.
"""
from __future__ import annotations

import copy
from types import TracebackType
from typing import Any, Iterable

from cachepool.application.cache.backend import CacheBackend, Entry
from cachepool.application.cache.item import CacheItem
from cachepool.application.cache.keys import KeyNamespace
from cachepool.application.cache.ttl import resolve_ttl
from cachepool.config.settings import CacheSettings
from cachepool.kernel.errors import BackendError
from cachepool.kernel.time import Clock, SystemClock
from cachepool.kernel.types import MISSING
from cachepool.observability.logging import get_logger

__all__ = ["CACHE_FLAG", "ItemPool"]

CACHE_FLAG = "@pool_"

logger = get_logger(__name__)


class ItemPool:
    """Item pool with deferred writes over a key-value backend.

    Not thread-safe; use one pool per thread or guard it externally.  Call
    :meth:`close` (or use the pool as a context manager) before discarding it:
    the finalizer flushes a forgotten buffer but its timing is up to the
    garbage collector.
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
        self._keys = KeyNamespace(CACHE_FLAG, self._settings.namespace)
        self._deferred: dict[str, CacheItem] = {}

    @property
    def settings(self) -> CacheSettings:
        return self._settings

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_item(self, key: str) -> CacheItem:
        normalized = self._keys.normalize(key)
        buffered = self._deferred.get(normalized)
        if buffered is not None:
            return self._copy_buffered(buffered)

        try:
            value = self._backend.get(normalized)
        except BackendError as exc:
            self._backend_failed("get", exc, key=key)
            value = MISSING
        return self._make_item(key, value)

    def get_items(self, keys: Iterable[str]) -> dict[str, CacheItem]:
        keys = list(keys)
        if not keys:
            return {}
        normalized = self._keys.normalize_many(keys)

        try:
            found = self._backend.get_multiple(list(dict.fromkeys(normalized)))
        except BackendError as exc:
            self._backend_failed("get_multiple", exc, keys=len(keys))
            found = {}

        items: dict[str, CacheItem] = {}
        for key, norm in zip(keys, normalized):
            if norm in found:
                items[key] = self._make_item(key, found[norm])
            elif norm in self._deferred:
                items[key] = self._copy_buffered(self._deferred[norm])
            else:
                items[key] = self._make_item(key, MISSING)
        return items

    def has_item(self, key: str) -> bool:
        normalized = self._keys.normalize(key)
        buffered = self._deferred.get(normalized)
        if buffered is not None:
            return not buffered.is_expired()

        try:
            return self._backend.has(normalized)
        except BackendError as exc:
            self._backend_failed("has", exc, key=key)
            return False

    # ------------------------------------------------------------------
    # Deletes
    # ------------------------------------------------------------------

    def clear(self) -> bool:
        """Purge the whole namespace and discard the deferred buffer."""
        self._deferred.clear()
        try:
            self._backend.purge(self._keys.prefix)
        except BackendError as exc:
            self._backend_failed("purge", exc, prefix=self._keys.prefix)
            return False
        return True

    def delete_item(self, key: str) -> bool:
        normalized = self._keys.normalize(key)
        self._deferred.pop(normalized, None)
        try:
            return self._backend.delete(normalized)
        except BackendError as exc:
            self._backend_failed("delete", exc, key=key)
            return False

    def delete_items(self, keys: Iterable[str]) -> bool:
        normalized = self._keys.normalize_many(keys)
        if not normalized:
            return True
        for norm in normalized:
            self._deferred.pop(norm, None)

        try:
            failed = self._backend.delete_multiple(list(dict.fromkeys(normalized)))
        except BackendError as exc:
            self._backend_failed("delete_multiple", exc, keys=len(normalized))
            return False
        if failed:
            logger.warning("cache.delete_partial_failure", failed=len(failed), total=len(normalized))
        return not failed

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def save(self, item: CacheItem) -> bool:
        """Persist *item* now; an expired item is deleted instead of written."""
        normalized = self._keys.normalize(item.get_key())
        ttl = self._ttl_for(item)
        if self._is_dead(item, ttl):
            return self.delete_item(item.get_key())

        self._deferred.pop(normalized, None)
        try:
            return self._backend.set(normalized, item.get(), ttl)
        except BackendError as exc:
            self._backend_failed("set", exc, key=item.get_key())
            return False

    def save_deferred(self, item: CacheItem) -> bool:
        """Buffer *item* until :meth:`commit`; auto-commits at the configured size."""
        self._deferred[self._keys.normalize(item.get_key())] = item

        threshold = self._settings.auto_commit_count
        if threshold is not None and len(self._deferred) >= threshold:
            logger.debug("cache.auto_commit", pending=len(self._deferred), threshold=threshold)
            return self.commit()
        return True

    def commit(self) -> bool:
        """Write every buffered item in one bulk call.

        The buffer is emptied even when some keys fail; the result is ``True``
        only if no key failed.  Items that expired while buffered are deleted.
        """
        if not self._deferred:
            return True
        pending, self._deferred = self._deferred, {}

        entries: dict[str, Entry] = {}
        expired: list[str] = []
        for norm, item in pending.items():
            ttl = self._ttl_for(item)
            if self._is_dead(item, ttl):
                expired.append(norm)
            else:
                entries[norm] = (item.get(), ttl)

        failed: list[str] = []
        if entries:
            try:
                failed.extend(self._backend.set_multiple(entries))
            except BackendError as exc:
                self._backend_failed("set_multiple", exc, keys=len(entries))
                failed.extend(entries)
        if expired:
            try:
                failed.extend(self._backend.delete_multiple(expired))
            except BackendError as exc:
                self._backend_failed("delete_multiple", exc, keys=len(expired))
                failed.extend(expired)

        logger.debug("cache.commit", written=len(entries), expired=len(expired), failed=len(failed))
        return not failed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def pending(self) -> int:
        """Number of items waiting in the deferred buffer."""
        return len(self._deferred)

    def close(self) -> bool:
        """Commit anything still buffered. Safe to call more than once."""
        return self.commit()

    def __enter__(self) -> ItemPool:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def __del__(self) -> None:
        if getattr(self, "_deferred", None):
            logger.warning("cache.teardown_flush", pending=len(self._deferred))
            self.commit()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _make_item(self, key: str, value: Any) -> CacheItem:
        if value is MISSING:
            return CacheItem(key, None, hit=False, clock=self._clock)
        return CacheItem(key, value, hit=True, clock=self._clock)

    @staticmethod
    def _copy_buffered(buffered: CacheItem) -> CacheItem:
        item = copy.copy(buffered)
        item.set_hit(not item.is_expired())
        return item

    def _ttl_for(self, item: CacheItem) -> int | None:
        if item.uses_default_ttl:
            return resolve_ttl(None, self._settings.default_ttl, self._clock)
        return item.get_expires_in_seconds()

    @staticmethod
    def _is_dead(item: CacheItem, ttl: int | None) -> bool:
        return item.is_expired() or (ttl is not None and ttl <= 0)

    def _backend_failed(self, operation: str, exc: BackendError, **context: Any) -> None:
        logger.warning(
            "cache.backend_error",
            operation=operation,
            backend=exc.backend,
            error=exc.message,
            **context,
        )
