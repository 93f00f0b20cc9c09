"""
cachepool – storage-agnostic cache item pools with deferred writes and tags.

Import path convention::

    from cachepool.application.cache import ItemPool, TaggablePoolAdapter
    from cachepool.adapters.memory import InMemoryBackend
    from cachepool.adapters.redis import RedisBackend
    from cachepool.config.settings import CacheSettings
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
