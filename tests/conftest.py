"""Shared fixtures: a frozen clock, an in-memory backend and pools over it."""
from __future__ import annotations

import pytest

from cachepool.adapters.memory import InMemoryBackend
from cachepool.application.cache import ItemPool, KeyNamespace, TaggablePoolAdapter
from cachepool.application.cache.pool import CACHE_FLAG
from cachepool.config.settings import CacheSettings
from cachepool.kernel.time import FrozenClock
from cachepool.testing.fakes import FakeClock, FlakyBackend


@pytest.fixture()
def clock() -> FrozenClock:
    return FakeClock()


@pytest.fixture()
def backend(clock: FrozenClock) -> FlakyBackend:
    return FlakyBackend(InMemoryBackend(clock=clock))


@pytest.fixture()
def pool(backend: FlakyBackend, clock: FrozenClock) -> ItemPool:
    return ItemPool(backend, CacheSettings(), clock=clock)


@pytest.fixture()
def tagged(pool: ItemPool) -> TaggablePoolAdapter:
    return TaggablePoolAdapter.make_taggable(pool)  # type: ignore[return-value]


@pytest.fixture()
def backend_key():
    """Map a caller key to the backend key used by a default-namespace pool."""
    namespace = KeyNamespace(CACHE_FLAG, "default")
    return namespace.normalize
