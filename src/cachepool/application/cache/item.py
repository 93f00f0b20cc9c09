"""Application cache – CacheItem."""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from cachepool.application.cache.ttl import Duration, resolve_expiration
from cachepool.kernel.time import Clock, SystemClock
from cachepool.kernel.types import MISSING

__all__ = ["CacheItem", "FAR_FUTURE"]

# Reported expiration of an item whose expiration was left unspecified.
FAR_FUTURE = timedelta(days=365 * 100)


class CacheItem:
    """A key/value pair plus expiration and hit state.

    Items are created by a pool on every read and mutated by the caller;
    nothing is persisted until the item is handed back to ``save`` or
    ``save_deferred``.  All mutators return the item itself::

        item = pool.get_item("user.42").set(profile).expires_after(300)
        pool.save(item)
    """

    def __init__(
        self,
        key: str,
        value: Any = None,
        *,
        hit: bool = False,
        expiration: datetime | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._key = key
        self._value = value
        self._hit = hit
        self._clock: Clock = clock or SystemClock()
        self._expiration: datetime | None = None
        self.expires_at(expiration)

    def __repr__(self) -> str:
        return f"CacheItem(key={self._key!r}, hit={self.is_hit()!r})"

    def get_key(self) -> str:
        return self._key

    def get(self) -> Any:
        return self._value

    def set(self, value: Any) -> CacheItem:
        self._value = value
        return self

    def is_hit(self) -> bool:
        return self._hit and self._value is not MISSING and not self.is_expired()

    def set_hit(self, hit: bool) -> CacheItem:
        """Pool-side setter; callers should not need it."""
        self._hit = bool(hit)
        return self

    def expires_at(self, expiration: datetime | None) -> CacheItem:
        """Expire at an absolute point in time, ``None`` for the default policy."""
        if expiration is not None and not isinstance(expiration, datetime):
            raise TypeError(f"expiration must be a datetime or None, got {type(expiration).__name__}")
        self._expiration = expiration
        return self

    def expires_after(self, time: int | timedelta | Duration | None) -> CacheItem:
        """Expire after a relative duration, ``None`` for the default policy."""
        if isinstance(time, datetime):
            raise TypeError("expires_after() takes a duration; use expires_at() for a datetime")
        self._expiration = resolve_expiration(time, self._clock)
        return self

    @property
    def uses_default_ttl(self) -> bool:
        """True while no explicit expiration has been set."""
        return self._expiration is None

    def get_expires_at(self) -> datetime:
        if self._expiration is None:
            return self._clock.now() + FAR_FUTURE
        return self._expiration

    def get_expires_in_seconds(self) -> int:
        """Seconds until expiration; negative once expired."""
        return int(self.get_expires_at().timestamp()) - self._clock.timestamp()

    def is_expired(self) -> bool:
        return self._clock.timestamp() > int(self.get_expires_at().timestamp())
