"""Unit tests for payload serializers."""
from __future__ import annotations

import pytest

from cachepool.adapters.serializers import JsonSerializer, PickleSerializer
from cachepool.application.cache import TaggedPayload
from cachepool.kernel.errors import SerializationError


class TestPickleSerializer:
    def test_round_trip(self) -> None:
        s = PickleSerializer()
        value = {"a": (1, 2), "b": None}
        assert s.loads(s.dumps(value)) == value

    def test_tagged_payload(self) -> None:
        s = PickleSerializer()
        payload = TaggedPayload("v", ("a", "b"))
        assert s.loads(s.dumps(payload)) == payload

    def test_unpicklable_value(self) -> None:
        with pytest.raises(SerializationError) as exc_info:
            PickleSerializer().dumps(lambda: None)
        assert exc_info.value.payload_type == "function"

    def test_corrupt_payload(self) -> None:
        with pytest.raises(SerializationError):
            PickleSerializer().loads(b"")


class TestJsonSerializer:
    def test_round_trip(self) -> None:
        s = JsonSerializer()
        value = {"a": [1, 2], "b": None, "c": "x"}
        assert s.dumps(value) == b'{"a":[1,2],"b":null,"c":"x"}'
        assert s.loads(s.dumps(value)) == value

    def test_unencodable_value(self) -> None:
        with pytest.raises(SerializationError) as exc_info:
            JsonSerializer().dumps({1, 2})
        assert exc_info.value.payload_type == "set"

    def test_corrupt_payload(self) -> None:
        with pytest.raises(SerializationError):
            JsonSerializer().loads(b"{not json")
