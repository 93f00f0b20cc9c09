"""Domain errors: invalid cache keys and tags."""

from __future__ import annotations

from typing import Any

from cachepool.kernel.errors.base import BaseError


class DomainError(BaseError):
    """Raised when a cache rule is violated by the caller."""

    default_code = "domain_error"


class ValidationError(DomainError):
    """Input does not meet validation rules.

    ``errors`` is a list of field-level validation failures.
    """

    default_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.errors: list[dict[str, Any]] = errors or []

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base["errors"] = self.errors
        return base


class InvalidKeyError(ValidationError):
    """A cache key is not a string, has a bad length or reserved characters."""

    default_code = "invalid_cache_key"

    def __init__(self, message: str, *, key: Any = None, **kwargs: Any) -> None:
        super().__init__(message, errors=[{"field": "key", "value": repr(key)}], **kwargs)
        self.key = key


class InvalidTagError(ValidationError):
    """A cache tag is not a string, is empty or has reserved characters."""

    default_code = "invalid_cache_tag"

    def __init__(self, message: str, *, tag: Any = None, **kwargs: Any) -> None:
        super().__init__(message, errors=[{"field": "tag", "value": repr(tag)}], **kwargs)
        self.tag = tag


__all__ = [
    "DomainError",
    "InvalidKeyError",
    "InvalidTagError",
    "ValidationError",
]
