"""Application cache – tag index on top of any ItemPool.

``TaggablePoolAdapter`` adds group invalidation to a pool whose backend has
no notion of tags.  For every tag it keeps a list item ``<tag_prefix><tag>``
holding the keys of the items carrying that tag, in the wrapped pool or in a
separate *tag store* pool.

Caveats:

* Keys starting with the tag prefix (``__tag.`` by default) are reserved.
* Sharing one pool is fragile on backends that evict entries on their own
  (LRU): a tag list can disappear before the items it indexes, which then
  silently lose their tag.  A separate, more persistent tag store avoids
  that, but the whole tag store is wiped whenever the adapter is cleared.
* Tag lists are updated with read-modify-write calls that are not atomic:
  two processes writing items under the same tag at the same time can lose
  one another's index update.
* Tag lists are written immediately even by ``save_deferred``; an item can
  be indexed under a tag before its value is committed.
"""
from __future__ import annotations

import dataclasses
from datetime import datetime, timedelta
from types import TracebackType
from typing import Any, Iterable, Protocol, runtime_checkable

from cachepool.application.cache.item import CacheItem
from cachepool.application.cache.keys import MAX_KEY_LENGTH, RESERVED_CHARACTERS
from cachepool.application.cache.pool import ItemPool
from cachepool.application.cache.ttl import Duration
from cachepool.kernel.errors import InvalidKeyError, InvalidTagError
from cachepool.observability.logging import get_logger

__all__ = [
    "TaggableCacheItemPool",
    "TaggableItem",
    "TaggablePoolAdapter",
    "TaggedPayload",
    "normalize_tags",
    "validate_tag",
]

logger = get_logger(__name__)


@dataclasses.dataclass(frozen=True)
class TaggedPayload:
    """What a taggable item actually stores: the caller's value plus its tags.

    Stored values of any other type were written without tags and are read
    back as-is with no previous tags.
    """

    value: Any
    tags: tuple[str, ...] = ()


def validate_tag(tag: Any) -> str:
    if not isinstance(tag, str):
        raise InvalidTagError(f"Cache tag must be a string, {type(tag).__name__} given", tag=tag)
    if not tag:
        raise InvalidTagError("Cache tag length must be greater than zero", tag=tag)
    if any(ch in RESERVED_CHARACTERS for ch in tag):
        raise InvalidTagError(
            f"Cache tag {tag!r} contains reserved characters {RESERVED_CHARACTERS}", tag=tag
        )
    return tag


def normalize_tags(tags: str | Iterable[str]) -> list[str]:
    """Validate *tags* and drop duplicates, keeping first-seen order."""
    if isinstance(tags, str):
        tags = [tags]
    return list(dict.fromkeys(validate_tag(tag) for tag in tags))


class TaggableItem:
    """A :class:`CacheItem` wrapper tracking current and previous tags.

    Previous tags are the tags stored with the item when it was read; they
    are loaded lazily on first access to the value or the tags.  A freshly
    read item starts with no current tags: saving it without ``set_tags``
    removes it from every tag it had.
    """

    def __init__(self, item: CacheItem) -> None:
        self._item = item
        self._initialized = False
        self._previous_tags: list[str] = []
        self._tags: list[str] = []

    def __repr__(self) -> str:
        return f"TaggableItem(key={self.get_key()!r}, tags={self._tags!r})"

    def unwrap(self) -> CacheItem:
        return self._item

    def get_key(self) -> str:
        return self._item.get_key()

    def get(self) -> Any:
        raw = self._item.get()
        if isinstance(raw, TaggedPayload):
            return raw.value
        return raw

    def is_hit(self) -> bool:
        return self._item.is_hit()

    def set(self, value: Any) -> TaggableItem:
        self._initialize_tags()
        self._item.set(TaggedPayload(value, tuple(self._tags)))
        return self

    def get_previous_tags(self) -> list[str]:
        self._initialize_tags()
        return list(self._previous_tags)

    def get_tags(self) -> list[str]:
        return list(self._tags)

    def set_tags(self, tags: str | Iterable[str]) -> TaggableItem:
        """Replace all current tags."""
        validated = normalize_tags(tags)
        self._initialize_tags()
        self._tags = validated
        self._item.set(TaggedPayload(self.get(), tuple(self._tags)))
        return self

    def expires_at(self, expiration: datetime | None) -> TaggableItem:
        self._item.expires_at(expiration)
        return self

    def expires_after(self, time: int | timedelta | Duration | None) -> TaggableItem:
        self._item.expires_after(time)
        return self

    def get_expires_at(self) -> datetime:
        return self._item.get_expires_at()

    def get_expires_in_seconds(self) -> int:
        return self._item.get_expires_in_seconds()

    def is_expired(self) -> bool:
        return self._item.is_expired()

    def _initialize_tags(self) -> None:
        if self._initialized:
            return
        if self._item.is_hit():
            raw = self._item.get()
            if isinstance(raw, TaggedPayload):
                self._previous_tags = list(raw.tags)
        self._initialized = True

    def _sync_payload(self) -> None:
        """Make the stored payload carry exactly the current tags."""
        self._initialize_tags()
        self._item.set(TaggedPayload(self.get(), tuple(self._tags)))

    def _mark_persisted(self) -> None:
        self._initialized = True
        self._previous_tags = list(self._tags)


@runtime_checkable
class TaggableCacheItemPool(Protocol):
    """Port: an item pool supporting invalidation by tag."""

    def get_item(self, key: str) -> TaggableItem: ...
    def save(self, item: TaggableItem) -> bool: ...
    def invalidate_tag(self, tag: str) -> bool: ...
    def invalidate_tags(self, tags: Iterable[str]) -> bool: ...


class TaggablePoolAdapter:
    """Makes any :class:`ItemPool` taggable.

    Use :meth:`make_taggable` rather than the constructor so an already
    taggable pool is returned untouched.
    """

    def __init__(self, pool: ItemPool, tag_store: ItemPool | None = None) -> None:
        self._pool = pool
        self._tag_store = tag_store if tag_store is not None else pool
        self._tag_prefix = pool.settings.tag_prefix

    @classmethod
    def make_taggable(
        cls, pool: Any, tag_store: ItemPool | None = None
    ) -> TaggableCacheItemPool:
        if isinstance(pool, TaggableCacheItemPool) and tag_store is None:
            return pool
        return cls(pool, tag_store)

    @property
    def pool(self) -> ItemPool:
        return self._pool

    @property
    def tag_store(self) -> ItemPool:
        return self._tag_store

    # ------------------------------------------------------------------
    # Item pool surface
    # ------------------------------------------------------------------

    def get_item(self, key: str) -> TaggableItem:
        self._check_key(key)
        return TaggableItem(self._pool.get_item(key))

    def get_items(self, keys: Iterable[str]) -> dict[str, TaggableItem]:
        keys = list(keys)
        for key in keys:
            self._check_key(key)
        return {key: TaggableItem(item) for key, item in self._pool.get_items(keys).items()}

    def has_item(self, key: str) -> bool:
        self._check_key(key)
        return self._pool.has_item(key)

    def clear(self) -> bool:
        """Clear the pool and the tag store (the entire tag store, if separate)."""
        cleared = self._pool.clear()
        if self._tag_store is not self._pool:
            cleared = self._tag_store.clear() and cleared
        return cleared

    def delete_item(self, key: str) -> bool:
        self._check_key(key)
        self._remove_tag_entries(self.get_item(key))
        return self._pool.delete_item(key)

    def delete_items(self, keys: Iterable[str]) -> bool:
        keys = list(keys)
        if not keys:
            return True
        for item in self.get_items(keys).values():
            self._remove_tag_entries(item)
        return self._pool.delete_items(keys)

    def save(self, item: TaggableItem) -> bool:
        self._check_key(item.get_key())
        item._sync_payload()
        if not self._link_tags(item):
            return False
        if not self._pool.save(item.unwrap()):
            return False
        self._unlink_stale_tags(item)
        item._mark_persisted()
        return True

    def save_deferred(self, item: TaggableItem) -> bool:
        """Defer the item write; its tag lists are updated right away."""
        self._check_key(item.get_key())
        item._sync_payload()
        if not self._link_tags(item):
            return False
        self._unlink_stale_tags(item)
        item._mark_persisted()
        return self._pool.save_deferred(item.unwrap())

    def commit(self) -> bool:
        committed = True
        if self._tag_store is not self._pool:
            committed = self._tag_store.commit()
        return self._pool.commit() and committed

    # ------------------------------------------------------------------
    # Tag invalidation
    # ------------------------------------------------------------------

    def invalidate_tag(self, tag: str) -> bool:
        return self.invalidate_tags([tag])

    def invalidate_tags(self, tags: Iterable[str]) -> bool:
        """Delete every item carrying any of *tags*, then the tag lists.

        If an item cannot be deleted the tag lists are kept, so a retry
        finds the same set of keys.
        """
        tags = normalize_tags(tags)
        names = [self._tag_key(tag) for tag in tags]

        keys: dict[str, None] = {}
        for name in names:
            keys.update(dict.fromkeys(self._get_list(name)))
        items = self.get_items(list(keys))

        if not self._pool.delete_items(list(keys)):
            logger.warning("cache.tag_invalidation_failed", tags=tags, keys=len(keys))
            return False

        # unlink the deleted items from the lists of their other tags
        for item in items.values():
            for tag in item.get_previous_tags():
                if tag in tags:
                    continue
                if not self._remove_list_item(self._tag_key(tag), item.get_key()):
                    logger.warning("cache.tag_unlink_failed", tag=tag, key=item.get_key())

        removed = True
        for name in names:
            removed = self._tag_store.delete_item(name) and removed
        logger.debug("cache.tag_invalidated", tags=tags, keys=len(keys))
        return removed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> bool:
        closed = True
        if self._tag_store is not self._pool:
            closed = self._tag_store.close()
        return self._pool.close() and closed

    def __enter__(self) -> TaggablePoolAdapter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Tag lists
    # ------------------------------------------------------------------

    def _link_tags(self, item: TaggableItem) -> bool:
        """Add the item's key to each of its current tag lists.

        A failed append aborts the save before anything else changes: an item
        missing from a tag list would survive that tag's invalidation.
        """
        key = item.get_key()
        for tag in item.get_tags():
            if not self._append_list_item(self._tag_key(tag), key):
                logger.warning("cache.tag_link_failed", tag=tag, key=key)
                return False
        return True

    def _unlink_stale_tags(self, item: TaggableItem) -> None:
        """Drop the item's key from lists of tags it no longer carries.

        Runs once the new payload is written.  A failed removal only leaves a
        stale key, which at worst invalidates the item once too often.
        """
        key = item.get_key()
        current = item.get_tags()
        for tag in item.get_previous_tags():
            if tag not in current and not self._remove_list_item(self._tag_key(tag), key):
                logger.warning("cache.tag_unlink_failed", tag=tag, key=key)

    def _remove_tag_entries(self, item: TaggableItem) -> None:
        key = item.get_key()
        for tag in item.get_previous_tags():
            if not self._remove_list_item(self._tag_key(tag), key):
                logger.warning("cache.tag_unlink_failed", tag=tag, key=key)

    def _get_list(self, name: str) -> list[str]:
        value = self._tag_store.get_item(name).get()
        return list(value) if isinstance(value, list) else []

    def _append_list_item(self, name: str, key: str) -> bool:
        list_item = self._tag_store.get_item(name)
        keys = list_item.get() if isinstance(list_item.get(), list) else []
        if key in keys:
            return True
        return self._tag_store.save(list_item.set(keys + [key]))

    def _remove_list_item(self, name: str, key: str) -> bool:
        list_item = self._tag_store.get_item(name)
        keys = list_item.get() if isinstance(list_item.get(), list) else []
        if key not in keys:
            return True
        remaining = [k for k in keys if k != key]
        if not remaining:
            return self._tag_store.delete_item(name)
        return self._tag_store.save(list_item.set(remaining))

    def _tag_key(self, tag: str) -> str:
        name = f"{self._tag_prefix}{tag}"
        if len(name) > MAX_KEY_LENGTH:
            raise InvalidTagError(
                f"Cache tag {tag!r} is too long: at most {MAX_KEY_LENGTH - len(self._tag_prefix)} "
                "characters",
                tag=tag,
            )
        return name

    def _check_key(self, key: Any) -> None:
        if (
            self._tag_store is self._pool
            and isinstance(key, str)
            and key.startswith(self._tag_prefix)
        ):
            raise InvalidKeyError(
                f"Cache keys starting with {self._tag_prefix!r} are reserved for tags", key=key
            )
