"""Kernel error hierarchy: public re-export surface.

Hierarchy::

    BaseError
    ├── DomainError            (domain.py)
    │   └── ValidationError
    │       ├── InvalidKeyError
    │       └── InvalidTagError
    ├── ApplicationError       (application.py)
    └── InfrastructureError    (infrastructure.py)
        ├── BackendError
        └── SerializationError

Validation errors reach the caller before any backend call.  Backend errors
never cross the pool boundary: pools log them and answer ``False``.
"""

from cachepool.kernel.errors.application import ApplicationError
from cachepool.kernel.errors.base import BaseError
from cachepool.kernel.errors.domain import (
    DomainError,
    InvalidKeyError,
    InvalidTagError,
    ValidationError,
)
from cachepool.kernel.errors.infrastructure import (
    BackendError,
    InfrastructureError,
    SerializationError,
)

__all__ = [
    "ApplicationError",
    "BackendError",
    "BaseError",
    "DomainError",
    "InfrastructureError",
    "InvalidKeyError",
    "InvalidTagError",
    "SerializationError",
    "ValidationError",
]
