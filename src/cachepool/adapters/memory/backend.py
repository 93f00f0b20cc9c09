"""In-memory adapter – InMemoryBackend."""
from __future__ import annotations

from typing import Any

from cachepool.adapters.serializers import PickleSerializer, Serializer
from cachepool.application.cache.backend import BulkOperationsMixin
from cachepool.kernel.errors import BackendError, SerializationError
from cachepool.kernel.time import Clock, SystemClock
from cachepool.kernel.types import MISSING

__all__ = ["INDEFINITE_TTL", "InMemoryBackend"]

# Ten years; what an indefinite entry actually gets.
INDEFINITE_TTL = 315_360_000


class InMemoryBackend(BulkOperationsMixin):
    """Dict-backed backend for tests and single-process use.

    Values are kept serialized, so later mutation of a cached object does not
    leak into the cache.  Expired entries are dropped lazily when read.
    """

    name = "memory"

    def __init__(self, clock: Clock | None = None, serializer: Serializer | None = None) -> None:
        self._clock: Clock = clock or SystemClock()
        self._serializer: Serializer = serializer or PickleSerializer()
        self._entries: dict[str, tuple[bytes, int]] = {}  # key -> (payload, expires at)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Any:
        if not self.has(key):
            return MISSING
        try:
            return self._serializer.loads(self._entries[key][0])
        except SerializationError as exc:
            raise BackendError(self.name, exc.message, operation="get", cause=exc) from exc

    def set(self, key: str, value: Any, ttl: int | None) -> bool:
        if ttl is not None and ttl <= 0:
            return self.delete(key)
        try:
            payload = self._serializer.dumps(value)
        except SerializationError as exc:
            raise BackendError(self.name, exc.message, operation="set", cause=exc) from exc
        expires_at = self._clock.timestamp() + (INDEFINITE_TTL if ttl is None else ttl)
        self._entries[key] = (payload, expires_at)
        return True

    def delete(self, key: str) -> bool:
        self._entries.pop(key, None)
        return True

    def has(self, key: str) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        if entry[1] < self._clock.timestamp():
            del self._entries[key]
            return False
        return True

    def purge(self, pattern: str | None) -> None:
        if pattern is None:
            self._entries.clear()
            return
        for key in [k for k in self._entries if pattern in k]:
            del self._entries[key]
