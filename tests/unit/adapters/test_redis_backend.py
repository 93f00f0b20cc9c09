"""Unit tests for RedisBackend – no running Redis required."""
from __future__ import annotations

import pickle
from typing import Any
from unittest.mock import MagicMock, call, patch

import pytest
import redis

from cachepool.adapters.redis import RedisBackend
from cachepool.adapters.redis.backend import _glob_escape
from cachepool.application.cache import CacheBackend, ItemPool
from cachepool.kernel.errors import BackendError
from cachepool.kernel.types import MISSING


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_backend(**kwargs: Any) -> tuple[RedisBackend, MagicMock]:
    client = MagicMock()
    client.get.return_value = None
    client.exists.return_value = 0
    return RedisBackend(client=client, **kwargs), client


def _dumps(value: Any) -> bytes:
    return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestRedisBackendInit:
    def test_satisfies_protocol(self) -> None:
        backend, _ = _make_backend()
        assert isinstance(backend, CacheBackend)

    def test_from_url(self) -> None:
        with patch.object(redis.Redis, "from_url") as from_url:
            backend = RedisBackend("redis://localhost:6379/0", socket_timeout=1)
        from_url.assert_called_once_with("redis://localhost:6379/0", socket_timeout=1)
        assert backend._client is from_url.return_value

    def test_needs_url_or_client(self) -> None:
        with pytest.raises(ValueError):
            RedisBackend()

    def test_missing_redis_package(self) -> None:
        import cachepool.adapters.redis.backend as backend_mod

        with patch.dict("sys.modules", {"redis": None}):
            with pytest.raises(ImportError, match="cachepool\\[redis\\]"):
                backend_mod._require_redis()

    def test_close(self) -> None:
        backend, client = _make_backend()
        backend.close()
        client.close.assert_called_once_with()


# ---------------------------------------------------------------------------
# Single keys
# ---------------------------------------------------------------------------


class TestRedisBackendKeys:
    def test_get_miss(self) -> None:
        backend, client = _make_backend()
        assert backend.get("k") is MISSING
        client.get.assert_called_once_with("k")

    def test_get_hit(self) -> None:
        backend, client = _make_backend()
        client.get.return_value = _dumps({"a": None})
        assert backend.get("k") == {"a": None}

    def test_stored_none_is_a_hit(self) -> None:
        backend, client = _make_backend()
        client.get.return_value = _dumps(None)
        assert backend.get("k") is None

    def test_set_with_ttl(self) -> None:
        backend, client = _make_backend()
        client.set.return_value = True
        assert backend.set("k", "v", 30) is True
        client.set.assert_called_once_with("k", _dumps("v"), ex=30)

    def test_set_indefinite(self) -> None:
        backend, client = _make_backend()
        backend.set("k", "v", None)
        client.set.assert_called_once_with("k", _dumps("v"), ex=None)

    def test_non_positive_ttl_deletes(self) -> None:
        backend, client = _make_backend()
        assert backend.set("k", "v", 0) is True
        client.set.assert_not_called()
        client.delete.assert_called_once_with("k")

    def test_delete(self) -> None:
        backend, client = _make_backend()
        client.delete.return_value = 0
        assert backend.delete("k") is True

    def test_has(self) -> None:
        backend, client = _make_backend()
        client.exists.return_value = 1
        assert backend.has("k") is True
        client.exists.assert_called_once_with("k")

    def test_redis_error_becomes_backend_error(self) -> None:
        backend, client = _make_backend()
        client.get.side_effect = redis.exceptions.ConnectionError("down")

        with pytest.raises(BackendError) as exc_info:
            backend.get("k")

        assert exc_info.value.backend == "redis"
        assert exc_info.value.operation == "get"
        assert isinstance(exc_info.value.cause, redis.exceptions.ConnectionError)

    def test_corrupt_payload_becomes_backend_error(self) -> None:
        backend, client = _make_backend()
        client.get.return_value = b"not a pickle"
        with pytest.raises(BackendError):
            backend.get("k")


# ---------------------------------------------------------------------------
# Bulk operations
# ---------------------------------------------------------------------------


class TestRedisBackendBulk:
    def test_get_multiple_uses_mget(self) -> None:
        backend, client = _make_backend()
        client.mget.return_value = [_dumps(1), None, _dumps(None)]

        assert backend.get_multiple(["a", "b", "c"]) == {"a": 1, "c": None}
        client.mget.assert_called_once_with(["a", "b", "c"])

    def test_get_multiple_empty(self) -> None:
        backend, client = _make_backend()
        assert backend.get_multiple([]) == {}
        client.mget.assert_not_called()

    def test_set_multiple_pipelines(self) -> None:
        backend, client = _make_backend()
        pipe = client.pipeline.return_value
        pipe.execute.return_value = [True, True]

        assert backend.set_multiple({"a": (1, None), "b": (2, 5)}) == []

        client.pipeline.assert_called_once_with(transaction=False)
        assert pipe.set.call_args_list == [
            call("a", _dumps(1), ex=None),
            call("b", _dumps(2), ex=5),
        ]
        pipe.execute.assert_called_once_with(raise_on_error=False)

    def test_set_multiple_reports_failed_results(self) -> None:
        backend, client = _make_backend()
        pipe = client.pipeline.return_value
        pipe.execute.return_value = [True, None, redis.exceptions.ResponseError("OOM")]

        failed = backend.set_multiple({"a": (1, None), "b": (2, None), "c": (3, None)})

        assert failed == ["b", "c"]

    def test_set_multiple_unserializable_value(self) -> None:
        backend, client = _make_backend()
        pipe = client.pipeline.return_value
        pipe.execute.return_value = [True]

        assert backend.set_multiple({"bad": (lambda: None, None), "ok": (1, None)}) == ["bad"]
        pipe.set.assert_called_once_with("ok", _dumps(1), ex=None)

    def test_set_multiple_deletes_expired_entries(self) -> None:
        backend, client = _make_backend()
        pipe = client.pipeline.return_value
        pipe.execute.return_value = [1]

        assert backend.set_multiple({"old": (1, 0)}) == []
        pipe.delete.assert_called_once_with("old")

    def test_set_multiple_connection_error(self) -> None:
        backend, client = _make_backend()
        client.pipeline.return_value.execute.side_effect = redis.exceptions.ConnectionError("down")
        with pytest.raises(BackendError):
            backend.set_multiple({"a": (1, None)})

    def test_delete_multiple_single_call(self) -> None:
        backend, client = _make_backend()
        assert backend.delete_multiple(["a", "b"]) == []
        client.delete.assert_called_once_with("a", "b")

    def test_delete_multiple_empty(self) -> None:
        backend, client = _make_backend()
        assert backend.delete_multiple([]) == []
        client.delete.assert_not_called()


# ---------------------------------------------------------------------------
# Purge
# ---------------------------------------------------------------------------


class TestRedisBackendPurge:
    def test_purge_everything_flushes_db(self) -> None:
        backend, client = _make_backend()
        backend.purge(None)
        client.flushdb.assert_called_once_with()

    def test_purge_pattern_scans_and_deletes(self) -> None:
        backend, client = _make_backend(scan_count=2)
        client.scan_iter.return_value = iter([b"k1", b"k2", b"k3"])

        backend.purge("@pool_default_")

        client.scan_iter.assert_called_once_with(match="*@pool_default_*", count=2)
        assert client.delete.call_args_list == [call(b"k1", b"k2"), call(b"k3")]

    def test_purge_nothing_found(self) -> None:
        backend, client = _make_backend()
        client.scan_iter.return_value = iter([])
        backend.purge("@pool_default_")
        client.delete.assert_not_called()

    def test_glob_characters_escaped(self) -> None:
        assert _glob_escape("a*b?[c]") == "a\\*b\\?\\[c\\]"
        assert _glob_escape("@pool_x_") == "@pool_x_"


# ---------------------------------------------------------------------------
# Behind a pool
# ---------------------------------------------------------------------------


class TestRedisBackendInPool:
    def test_pool_reports_failure_as_false(self) -> None:
        backend, client = _make_backend()
        client.set.side_effect = redis.exceptions.TimeoutError("slow")
        pool = ItemPool(backend)

        assert pool.save(pool.get_item("key").set("value")) is False

    def test_pool_commit_uses_one_pipeline(self) -> None:
        backend, client = _make_backend()
        client.pipeline.return_value.execute.return_value = [True, True]
        pool = ItemPool(backend)

        pool.save_deferred(pool.get_item("a").set(1))
        pool.save_deferred(pool.get_item("b").set(2))

        assert pool.commit() is True
        client.pipeline.assert_called_once_with(transaction=False)
