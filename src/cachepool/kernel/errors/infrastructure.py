"""Infrastructure errors: backend I/O and payload encoding failures."""

from __future__ import annotations

from typing import Any

from cachepool.kernel.errors.base import BaseError


class InfrastructureError(BaseError):
    """Infrastructure / I/O failure that is not a caller mistake."""

    default_code = "infrastructure_error"


class BackendError(InfrastructureError):
    """A cache backend failed to read, write, delete or purge."""

    default_code = "backend_error"

    def __init__(
        self,
        backend: str,
        message: str | None = None,
        *,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message or f"Cache backend '{backend}' failed", **kwargs)
        self.backend = backend
        self.operation = operation


class SerializationError(InfrastructureError):
    """Failed to serialize or deserialize a cached payload."""

    default_code = "serialization_error"

    def __init__(
        self,
        message: str,
        *,
        payload_type: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.payload_type = payload_type


__all__ = [
    "BackendError",
    "InfrastructureError",
    "SerializationError",
]
