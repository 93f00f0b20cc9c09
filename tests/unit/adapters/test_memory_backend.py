"""Unit tests for InMemoryBackend."""
from __future__ import annotations

import pytest

from cachepool.adapters.memory import InMemoryBackend
from cachepool.adapters.memory.backend import INDEFINITE_TTL
from cachepool.adapters.serializers import JsonSerializer
from cachepool.application.cache import CacheBackend
from cachepool.kernel.errors import BackendError
from cachepool.kernel.types import MISSING
from cachepool.testing.fakes import FakeClock


@pytest.fixture()
def memory(clock) -> InMemoryBackend:
    return InMemoryBackend(clock=clock)


# ---------------------------------------------------------------------------
# Single keys
# ---------------------------------------------------------------------------


class TestInMemoryBackend:
    def test_satisfies_protocol(self, memory: InMemoryBackend) -> None:
        assert isinstance(memory, CacheBackend)

    def test_absent_key_is_missing(self, memory: InMemoryBackend) -> None:
        assert memory.get("k") is MISSING
        assert memory.has("k") is False

    def test_set_get(self, memory: InMemoryBackend) -> None:
        assert memory.set("k", [1, 2], None) is True
        assert memory.get("k") == [1, 2]
        assert len(memory) == 1

    def test_none_is_stored(self, memory: InMemoryBackend) -> None:
        memory.set("k", None, None)
        assert memory.get("k") is None
        assert memory.has("k") is True

    def test_stored_value_is_isolated(self, memory: InMemoryBackend) -> None:
        value = {"a": 1}
        memory.set("k", value, None)
        value["a"] = 2
        assert memory.get("k") == {"a": 1}

    def test_ttl_expiry(self, memory: InMemoryBackend, clock) -> None:
        memory.set("k", "v", 5)
        clock.advance(seconds=5)
        assert memory.get("k") == "v"
        clock.advance(seconds=1)
        assert memory.get("k") is MISSING
        assert len(memory) == 0

    def test_indefinite_is_ten_years(self, memory: InMemoryBackend, clock) -> None:
        memory.set("k", "v", None)
        clock.advance(seconds=INDEFINITE_TTL)
        assert memory.has("k") is True
        clock.advance(seconds=1)
        assert memory.has("k") is False

    @pytest.mark.parametrize("ttl", [0, -1])
    def test_non_positive_ttl_deletes(self, memory: InMemoryBackend, ttl: int) -> None:
        memory.set("k", "v", None)
        assert memory.set("k", "v2", ttl) is True
        assert memory.has("k") is False

    def test_delete_absent_key(self, memory: InMemoryBackend) -> None:
        assert memory.delete("k") is True

    def test_unserializable_value(self, memory: InMemoryBackend) -> None:
        with pytest.raises(BackendError) as exc_info:
            memory.set("k", lambda: None, None)
        assert exc_info.value.backend == "memory"
        assert exc_info.value.operation == "set"

    def test_custom_serializer(self) -> None:
        memory = InMemoryBackend(clock=FakeClock(), serializer=JsonSerializer())
        memory.set("k", (1, 2), None)
        assert memory.get("k") == [1, 2]


# ---------------------------------------------------------------------------
# Bulk operations and purge
# ---------------------------------------------------------------------------


class TestInMemoryBackendBulk:
    def test_set_multiple_with_per_key_ttl(self, memory: InMemoryBackend, clock) -> None:
        assert memory.set_multiple({"x": ("v1", None), "y": ("v2", 5)}) == []
        assert memory.get_multiple(["x", "y"]) == {"x": "v1", "y": "v2"}

        clock.advance(seconds=6)

        assert memory.get("y") is MISSING
        assert memory.get("x") == "v1"

    def test_get_multiple_only_returns_found(self, memory: InMemoryBackend) -> None:
        memory.set("a", None, None)
        assert memory.get_multiple(["a", "b"]) == {"a": None}

    def test_set_multiple_reports_failed_keys(self, memory: InMemoryBackend) -> None:
        failed = memory.set_multiple({"ok": (1, None), "bad": (lambda: None, None)})
        assert failed == ["bad"]
        assert memory.get("ok") == 1

    def test_delete_multiple(self, memory: InMemoryBackend) -> None:
        memory.set_multiple({"a": (1, None), "b": (2, None)})
        assert memory.delete_multiple(["a", "b", "c"]) == []
        assert len(memory) == 0

    def test_delete_multiple_empty(self, memory: InMemoryBackend) -> None:
        assert memory.delete_multiple([]) == []

    def test_purge_by_substring(self, memory: InMemoryBackend) -> None:
        memory.set("@pool_a_1", 1, None)
        memory.set("@pool_a_2", 2, None)
        memory.set("@pool_b_1", 3, None)

        memory.purge("@pool_a_")

        assert memory.has("@pool_a_1") is False
        assert memory.has("@pool_a_2") is False
        assert memory.has("@pool_b_1") is True

    def test_purge_everything(self, memory: InMemoryBackend) -> None:
        memory.set("a", 1, None)
        memory.set("b", 2, None)
        memory.purge(None)
        assert len(memory) == 0
