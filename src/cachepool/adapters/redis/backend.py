"""Redis adapter – RedisBackend."""
from __future__ import annotations

import contextlib
import re
from typing import Any, Iterator, Mapping

from cachepool.adapters.serializers import PickleSerializer, Serializer
from cachepool.application.cache.backend import Entry
from cachepool.kernel.errors import BackendError, SerializationError
from cachepool.kernel.types import MISSING

__all__ = ["RedisBackend"]

_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


def _require_redis() -> Any:
    try:
        import redis
        return redis
    except ImportError as exc:
        raise ImportError("Install 'cachepool[redis]' to use the Redis backend") from exc


def _glob_escape(pattern: str) -> str:
    return _GLOB_SPECIAL.sub(r"\\\1", pattern)


class RedisBackend:
    """Cache backend over a synchronous redis-py client.

    Bulk writes go through one non-transactional pipeline, bulk reads through
    ``MGET`` and bulk deletes through a single ``DEL``.  Redis errors surface
    as :class:`~cachepool.kernel.errors.BackendError`.
    """

    name = "redis"

    def __init__(
        self,
        url: str | None = None,
        *,
        client: Any = None,
        serializer: Serializer | None = None,
        scan_count: int = 1000,
        **kwargs: Any,
    ) -> None:
        redis = _require_redis()
        if client is None:
            if url is None:
                raise ValueError("RedisBackend needs either a url or a client")
            client = redis.Redis.from_url(url, **kwargs)
        self._client = client
        self._redis_error: type[Exception] = redis.RedisError
        self._serializer: Serializer = serializer or PickleSerializer()
        self._scan_count = scan_count

    @contextlib.contextmanager
    def _errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except self._redis_error as exc:
            raise BackendError(self.name, str(exc), operation=operation, cause=exc) from exc
        except SerializationError as exc:
            raise BackendError(self.name, exc.message, operation=operation, cause=exc) from exc

    def get(self, key: str) -> Any:
        with self._errors("get"):
            raw = self._client.get(key)
            if raw is None:
                return MISSING
            return self._serializer.loads(raw)

    def set(self, key: str, value: Any, ttl: int | None) -> bool:
        if ttl is not None and ttl <= 0:
            return self.delete(key)
        with self._errors("set"):
            return bool(self._client.set(key, self._serializer.dumps(value), ex=ttl))

    def delete(self, key: str) -> bool:
        with self._errors("delete"):
            self._client.delete(key)
        return True

    def has(self, key: str) -> bool:
        with self._errors("has"):
            return bool(self._client.exists(key))

    def get_multiple(self, keys: list[str]) -> dict[str, Any]:
        if not keys:
            return {}
        with self._errors("get_multiple"):
            raws = self._client.mget(keys)
            return {
                key: self._serializer.loads(raw)
                for key, raw in zip(keys, raws)
                if raw is not None
            }

    def set_multiple(self, entries: Mapping[str, Entry]) -> list[str]:
        if not entries:
            return []
        failed: list[str] = []
        queued: list[str] = []
        with self._errors("set_multiple"):
            pipe = self._client.pipeline(transaction=False)
            for key, (value, ttl) in entries.items():
                if ttl is not None and ttl <= 0:
                    pipe.delete(key)
                    queued.append(key)
                    continue
                try:
                    payload = self._serializer.dumps(value)
                except SerializationError:
                    failed.append(key)
                    continue
                pipe.set(key, payload, ex=ttl)
                queued.append(key)
            results = pipe.execute(raise_on_error=False)
        for key, result in zip(queued, results):
            if result is None or result is False or isinstance(result, Exception):
                failed.append(key)
        return failed

    def delete_multiple(self, keys: list[str]) -> list[str]:
        if not keys:
            return []
        with self._errors("delete_multiple"):
            self._client.delete(*keys)
        return []

    def purge(self, pattern: str | None) -> None:
        with self._errors("purge"):
            if pattern is None:
                self._client.flushdb()
                return
            batch: list[Any] = []
            for key in self._client.scan_iter(match=f"*{_glob_escape(pattern)}*", count=self._scan_count):
                batch.append(key)
                if len(batch) >= self._scan_count:
                    self._client.delete(*batch)
                    batch = []
            if batch:
                self._client.delete(*batch)

    def close(self) -> None:
        self._client.close()
