"""Observability – structured logging for cache pools."""
from cachepool.observability.logging import JsonLoggerFactory, get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
