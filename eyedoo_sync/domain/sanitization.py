"""Pure sanitizers applied to input payloads and to every pre-write payload."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Any, Final

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as SchemaValidationError

_WHITESPACE_RUN = re.compile(r"\s+")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_PHONE_DISALLOWED = re.compile(r"[^\d+]")
_MIN_PHONE_DIGITS = 10

_url_adapter: TypeAdapter[HttpUrl] = TypeAdapter(HttpUrl)


class _Unset:
    """Marker for "field not provided", distinct from an explicit ``None``."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Final = _Unset()


def sanitize_string(value: str | None) -> str | None:
    """Trim and collapse internal whitespace runs; empty becomes ``None``."""
    if not value:
        return None
    collapsed = _WHITESPACE_RUN.sub(" ", value).strip()
    return collapsed or None


def sanitize_string_or_empty(value: str | None) -> str:
    return sanitize_string(value) or ""


def sanitize_email(email: str | None) -> str | None:
    """Lower-cased address, or ``None`` when it does not look like one."""
    trimmed = sanitize_string(email)
    if not trimmed:
        return None
    lowered = trimmed.lower()
    return lowered if _EMAIL.match(lowered) else None


def sanitize_phone(phone: str | None) -> str | None:
    """Digits and ``+`` only; ``None`` below ten digits."""
    if not phone:
        return None
    cleaned = _PHONE_DISALLOWED.sub("", phone)
    if len(cleaned.replace("+", "")) < _MIN_PHONE_DIGITS:
        return None
    return cleaned


def sanitize_url(url: str | None) -> str | None:
    """Prefix ``https://`` when no scheme is given; ``None`` if still invalid."""
    trimmed = sanitize_string(url)
    if not trimmed or " " in trimmed:
        return None
    candidate = trimmed if trimmed.startswith("http") else f"https://{trimmed}"
    try:
        _url_adapter.validate_python(candidate)
    except SchemaValidationError:
        return None
    return candidate


def sanitize_array(values: Iterable[Any] | None) -> list[Any]:
    """Drop ``None`` entries; ``None`` input becomes an empty list."""
    if not values:
        return []
    return [value for value in values if value is not None]


def sanitize_string_list(values: Iterable[str | None] | None) -> list[str]:
    return [s for s in (sanitize_string(v) for v in sanitize_array(values)) if s]


def remove_undefined_values(data: Mapping[str, Any], recursive: bool = False) -> dict[str, Any]:
    """Drop keys whose value is ``UNSET``. Explicit ``None`` is kept.

    Args:
        data: Payload about to be written
        recursive: Also clean nested mappings and mappings inside lists
    """
    cleaned: dict[str, Any] = {}
    for key, value in data.items():
        if value is UNSET:
            continue
        if recursive:
            value = _clean_nested(value)
        cleaned[key] = value
    return cleaned


def _clean_nested(value: Any) -> Any:
    if isinstance(value, Mapping):
        return remove_undefined_values(value, recursive=True)
    if isinstance(value, list):
        return [_clean_nested(item) for item in value if item is not UNSET]
    return value
