"""Kernel types – the ``MISSING`` sentinel.

Backends answer ``MISSING`` for an absent key so that ``None`` stays a
legitimate cached value.
"""
from __future__ import annotations

import enum


class Missing(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = Missing.MISSING

__all__ = ["MISSING", "Missing"]
