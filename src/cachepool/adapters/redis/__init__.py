"""Redis adapter – pipelined cache backend."""
from cachepool.adapters.redis.backend import RedisBackend

__all__ = ["RedisBackend"]
