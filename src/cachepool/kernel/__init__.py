"""Kernel – framework-agnostic building blocks shared by every layer."""

from cachepool.kernel.errors import (
    ApplicationError,
    BackendError,
    BaseError,
    DomainError,
    InfrastructureError,
    InvalidKeyError,
    InvalidTagError,
    SerializationError,
    ValidationError,
)
from cachepool.kernel.types import MISSING

__all__ = [
    "ApplicationError",
    "BackendError",
    "BaseError",
    "DomainError",
    "InfrastructureError",
    "InvalidKeyError",
    "InvalidTagError",
    "MISSING",
    "SerializationError",
    "ValidationError",
]
