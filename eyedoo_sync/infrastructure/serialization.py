"""Encoding of document payloads for the NATS KV store."""

import json
from typing import Any

import msgpack

from ..domain.exceptions import SerializationError


def serialize_document(data: dict[str, Any], use_msgpack: bool = True) -> bytes:
    """Encode a document mapping.

    Timezone-aware ``datetime`` values are packed as msgpack timestamps.
    """
    try:
        if use_msgpack:
            return bytes(msgpack.packb(data, use_bin_type=True, datetime=True))
        return json.dumps(data, default=str).encode()
    except Exception as e:
        raise SerializationError(f"Failed to serialize document: {e}", operation="serialize") from e


def is_msgpack(data: bytes) -> bool:
    """Check if data looks like a MessagePack map or array."""
    if not data:
        return False
    first_byte = data[0]
    return (
        0x80 <= first_byte <= 0x8F  # fixmap
        or 0x90 <= first_byte <= 0x9F  # fixarray
        or first_byte in (0xDC, 0xDD, 0xDE, 0xDF)  # array16/32, map16/32
    )


def deserialize_document(data: bytes) -> dict[str, Any]:
    """Decode a stored document, detecting msgpack or JSON."""
    if not data:
        raise SerializationError("Empty document payload", operation="deserialize")
    try:
        if is_msgpack(data):
            decoded = msgpack.unpackb(data, raw=False, timestamp=3)
        else:
            decoded = json.loads(data.decode())
    except Exception as e:
        raise SerializationError(
            f"Failed to deserialize document: {e}", operation="deserialize"
        ) from e
    if not isinstance(decoded, dict):
        raise SerializationError(
            f"Stored document is not a mapping: {type(decoded).__name__}",
            operation="deserialize",
        )
    return decoded
