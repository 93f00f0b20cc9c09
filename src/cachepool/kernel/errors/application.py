"""Application-layer errors: misuse of the cache API itself."""

from __future__ import annotations

from cachepool.kernel.errors.base import BaseError


class ApplicationError(BaseError):
    """Cross-cutting application-layer concern (configuration, wiring)."""

    default_code = "application_error"


__all__ = ["ApplicationError"]
