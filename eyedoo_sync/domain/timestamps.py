"""Conversion between the store's timestamp encoding and ``datetime``.

Documents persist timestamps as ``{"seconds": int, "nanoseconds": int}``
mappings. Values decoded by msgpack may also arrive as ``msgpack.Timestamp``.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from msgpack import Timestamp

_SECONDS = "seconds"
_NANOSECONDS = "nanoseconds"


def _is_encoded_timestamp(value: dict[Any, Any]) -> bool:
    if set(value) != {_SECONDS, _NANOSECONDS}:
        return False
    seconds, nanos = value[_SECONDS], value[_NANOSECONDS]
    return (
        isinstance(seconds, int | float)
        and isinstance(nanos, int | float)
        and not isinstance(seconds, bool)
        and not isinstance(nanos, bool)
    )


def from_store_timestamp(seconds: float, nanoseconds: float = 0) -> datetime:
    """Microsecond precision; sub-microsecond digits are dropped."""
    whole = int(seconds)
    micros = round((seconds - whole) * 1_000_000) + int(nanoseconds) // 1000
    return datetime.fromtimestamp(whole, tz=UTC) + timedelta(microseconds=micros)


def to_store_timestamp(moment: datetime) -> dict[str, int]:
    """Encode an aware ``datetime``; naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    ts = Timestamp.from_datetime(moment)
    return {_SECONDS: ts.seconds, _NANOSECONDS: ts.nanoseconds}


def convert_all_timestamps(data: Any) -> Any:
    """Recursively replace encoded timestamps with ``datetime`` values."""
    if data is None or isinstance(data, datetime):
        return data
    if isinstance(data, Timestamp):
        return data.to_datetime()
    if isinstance(data, dict):
        if _is_encoded_timestamp(data):
            return from_store_timestamp(data[_SECONDS], data[_NANOSECONDS])
        return {key: convert_all_timestamps(value) for key, value in data.items()}
    if isinstance(data, list | tuple):
        return [convert_all_timestamps(item) for item in data]
    return data


def encode_all_timestamps(data: Any) -> Any:
    """Inverse of :func:`convert_all_timestamps`, applied before writes."""
    if isinstance(data, datetime):
        return to_store_timestamp(data)
    if isinstance(data, dict):
        return {key: encode_all_timestamps(value) for key, value in data.items()}
    if isinstance(data, list | tuple):
        return [encode_all_timestamps(item) for item in data]
    return data
