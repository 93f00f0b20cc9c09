"""Application cache – item pools, deferred writes and tag invalidation."""
from cachepool.application.cache.backend import BulkOperationsMixin, CacheBackend, Entry
from cachepool.application.cache.item import CacheItem
from cachepool.application.cache.keys import KeyNamespace, validate_key
from cachepool.application.cache.pool import ItemPool
from cachepool.application.cache.simple import SimpleCache
from cachepool.application.cache.tags import (
    TaggableCacheItemPool,
    TaggableItem,
    TaggablePoolAdapter,
    TaggedPayload,
    normalize_tags,
    validate_tag,
)
from cachepool.application.cache.ttl import (
    USE_DEFAULT,
    Duration,
    TtlLike,
    duration_to_seconds,
    resolve_expiration,
    resolve_ttl,
)

__all__ = [
    "BulkOperationsMixin",
    "CacheBackend",
    "CacheItem",
    "Duration",
    "Entry",
    "ItemPool",
    "KeyNamespace",
    "SimpleCache",
    "TaggableCacheItemPool",
    "TaggableItem",
    "TaggablePoolAdapter",
    "TaggedPayload",
    "TtlLike",
    "USE_DEFAULT",
    "duration_to_seconds",
    "normalize_tags",
    "resolve_expiration",
    "resolve_ttl",
    "validate_key",
    "validate_tag",
]
