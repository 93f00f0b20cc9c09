"""In-memory adapter – process-local cache backend."""
from cachepool.adapters.memory.backend import InMemoryBackend

__all__ = ["InMemoryBackend"]
