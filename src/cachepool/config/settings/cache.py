"""Config settings – CacheSettings.

Immutable configuration captured when a pool or façade is constructed::

    settings = EnvSettingsLoader().load(CacheSettings)   # CACHE_* variables
    pool = ItemPool(InMemoryBackend(), settings)
"""
from __future__ import annotations

import dataclasses
import typing

from cachepool.config.settings.base import Settings
from cachepool.config.validation import InvalidSettingValueError

RESERVED_CHARACTERS = "{}()/\\@:"


@dataclasses.dataclass(frozen=True)
class CacheSettings(Settings):
    """Namespace, default TTL and deferred-write policy of a cache pool.

    Attributes:
        namespace: Isolates one logical cache's keys inside a shared backend.
            ``None`` disables the namespace segment of the key prefix.
        default_ttl: Seconds applied to items whose expiration was left
            unspecified. ``None`` stores them indefinitely.
        auto_commit_count: Commit the deferred buffer as soon as it holds
            this many items. ``None`` disables auto-commit.
        tag_prefix: Key prefix reserved for tag index items.
    """

    _prefix: typing.ClassVar[str] = "CACHE"

    namespace: str | None = "default"
    default_ttl: int | None = None
    auto_commit_count: int | None = None
    tag_prefix: str = "__tag."

    def _validate(self) -> None:
        if self.namespace is not None:
            if not self.namespace:
                raise InvalidSettingValueError("namespace", self.namespace, "must not be empty")
            if any(ch in RESERVED_CHARACTERS for ch in self.namespace):
                raise InvalidSettingValueError(
                    "namespace", self.namespace, f"must not contain any of {RESERVED_CHARACTERS}"
                )
        if self.default_ttl is not None and self.default_ttl <= 0:
            raise InvalidSettingValueError("default_ttl", self.default_ttl, "must be > 0")
        if self.auto_commit_count is not None and self.auto_commit_count < 1:
            raise InvalidSettingValueError(
                "auto_commit_count", self.auto_commit_count, "must be >= 1"
            )
        if not self.tag_prefix or any(ch in RESERVED_CHARACTERS for ch in self.tag_prefix):
            raise InvalidSettingValueError(
                "tag_prefix", self.tag_prefix, f"must be non-empty and free of {RESERVED_CHARACTERS}"
            )


__all__ = ["CacheSettings", "RESERVED_CHARACTERS"]
