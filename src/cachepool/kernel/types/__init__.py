"""Kernel types – shared sentinels."""
from cachepool.kernel.types.missing import MISSING, Missing

__all__ = ["MISSING", "Missing"]
