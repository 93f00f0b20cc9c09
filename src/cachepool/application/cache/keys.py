"""Application cache – key validation and namespacing."""
from __future__ import annotations

import hashlib
import re
from typing import Any, Iterable

from cachepool.config.settings.cache import RESERVED_CHARACTERS
from cachepool.kernel.errors import InvalidKeyError

__all__ = ["KeyNamespace", "MAX_KEY_LENGTH", "RESERVED_CHARACTERS", "validate_key"]

MAX_KEY_LENGTH = 64

_HASHED = re.compile(r"^[0-9a-f]{40}$", re.IGNORECASE)


def validate_key(key: Any) -> str:
    """Return *key* unchanged if it is a legal cache key, raise otherwise."""
    if not isinstance(key, str):
        raise InvalidKeyError(
            f"Cache key must be a string, {type(key).__name__} given", key=key
        )
    if any(ch in RESERVED_CHARACTERS for ch in key):
        raise InvalidKeyError(
            f"Cache key {key!r} contains reserved characters: {RESERVED_CHARACTERS!r}", key=key
        )
    if not 0 < len(key) <= MAX_KEY_LENGTH:
        raise InvalidKeyError(
            f"Cache key length must be between 1 and {MAX_KEY_LENGTH}, got {len(key)}", key=key
        )
    return key


class KeyNamespace:
    """Maps caller keys to backend keys: ``<flag><namespace>_<sha1(key)>``.

    Keys that already are 40-hex digests are used as-is.  ``prefix`` is the
    literal string shared by every backend key of the namespace, which is what
    ``purge`` receives on ``clear()``.
    """

    def __init__(self, flag: str, namespace: str | None) -> None:
        self._flag = flag
        self._namespace = namespace

    @property
    def prefix(self) -> str:
        if self._namespace is None:
            return self._flag
        return f"{self._flag}{self._namespace}_"

    def normalize(self, key: Any) -> str:
        validate_key(key)
        if _HASHED.match(key):
            return f"{self.prefix}{key}"
        digest = hashlib.sha1(key.encode("utf-8"), usedforsecurity=False).hexdigest()
        return f"{self.prefix}{digest}"

    def normalize_many(self, keys: Iterable[Any]) -> list[str]:
        return [self.normalize(key) for key in keys]
