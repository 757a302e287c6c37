"""Tests for document serialization."""

from datetime import UTC, datetime

import pytest

from eyedoo_sync.domain.exceptions import SerializationError
from eyedoo_sync.infrastructure.serialization import (
    deserialize_document,
    is_msgpack,
    serialize_document,
)


class TestSerialization:
    """Test msgpack and JSON encoding of documents."""

    def test_msgpack_round_trip(self):
        """Test that msgpack documents decode to the same mapping."""
        document = {"config": {"type": "tasks", "totalItems": 2}, "items": [{"id": "t1"}]}

        payload = serialize_document(document)

        assert is_msgpack(payload)
        assert deserialize_document(payload) == document

    def test_json_round_trip(self):
        """Test the JSON fallback encoding."""
        document = {"name": "Jane", "tags": ["a", "b"]}

        payload = serialize_document(document, use_msgpack=False)

        assert not is_msgpack(payload)
        assert deserialize_document(payload) == document

    def test_datetime_packed_as_timestamp(self):
        """Test that aware datetimes survive a msgpack round trip."""
        moment = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)

        decoded = deserialize_document(serialize_document({"at": moment}))

        assert decoded["at"] == moment

    def test_empty_payload(self):
        """Test that empty bytes are rejected."""
        with pytest.raises(SerializationError, match="Empty"):
            deserialize_document(b"")

    def test_corrupt_payload(self):
        """Test that undecodable bytes raise SerializationError."""
        with pytest.raises(SerializationError):
            deserialize_document(b"{not json")

    def test_non_mapping_payload(self):
        """Test that a valid payload that is not a mapping is rejected."""
        with pytest.raises(SerializationError, match="not a mapping"):
            deserialize_document(serialize_document([1, 2]))  # type: ignore[arg-type]

    def test_unserializable(self):
        """Test that unencodable values raise SerializationError."""
        with pytest.raises(SerializationError):
            serialize_document({"obj": object()})
