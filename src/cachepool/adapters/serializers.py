"""Adapters – payload serializers for backends that store bytes."""
from __future__ import annotations

import json
import pickle
from typing import Any, Protocol

from cachepool.kernel.errors import SerializationError

__all__ = ["JsonSerializer", "PickleSerializer", "Serializer"]


class Serializer(Protocol):
    def dumps(self, value: Any) -> bytes: ...
    def loads(self, data: bytes) -> Any: ...


class PickleSerializer:
    """Round-trips any picklable value, tagged payloads included."""

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self._protocol = protocol

    def dumps(self, value: Any) -> bytes:
        try:
            return pickle.dumps(value, protocol=self._protocol)
        except (pickle.PicklingError, TypeError, AttributeError) as exc:
            raise SerializationError(
                f"Cannot pickle value: {exc}", payload_type=type(value).__name__, cause=exc
            ) from exc

    def loads(self, data: bytes) -> Any:
        try:
            return pickle.loads(data)  # noqa: S301
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError) as exc:
            raise SerializationError(f"Cannot unpickle payload: {exc}", cause=exc) from exc


class JsonSerializer:
    """JSON payloads, readable by non-Python consumers.

    Only JSON-native values survive a round trip: tuples come back as lists
    and tagged payloads are not supported.
    """

    def dumps(self, value: Any) -> bytes:
        try:
            return json.dumps(value, separators=(",", ":")).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SerializationError(
                f"Cannot encode value as JSON: {exc}", payload_type=type(value).__name__, cause=exc
            ) from exc

    def loads(self, data: bytes) -> Any:
        try:
            return json.loads(data)
        except (TypeError, ValueError) as exc:
            raise SerializationError(f"Cannot decode JSON payload: {exc}", cause=exc) from exc
