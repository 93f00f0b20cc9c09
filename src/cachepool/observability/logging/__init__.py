"""Observability – structlog configuration and logger helper."""
from cachepool.observability.logging.factory import JsonLoggerFactory
from cachepool.observability.logging.processors import get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
