"""Testing fakes – in-memory doubles for cache ports."""
from cachepool.kernel.time import FrozenClock
from cachepool.testing.fakes.backend import FlakyBackend
from cachepool.testing.fakes.clock import FakeClock

__all__ = ["FakeClock", "FlakyBackend", "FrozenClock"]
