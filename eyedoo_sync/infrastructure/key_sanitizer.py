"""Conversion of document key paths into NATS KV keys.

This is an infrastructure concern: the domain addresses documents by
``KeyPath`` and never sees the flattened key.
"""

from typing import ClassVar

from ..domain.key_paths import KeyPath


class KeySanitizer:
    """Flattens key paths into keys NATS KV accepts.

    NATS KV keys cannot contain: spaces, tabs, '.', '*', '>', '/', '\\', ':'.
    Invalid characters inside a segment become ``_`` and segments are joined
    with ``SEPARATOR``.
    """

    INVALID_CHARS: ClassVar[list[str]] = [" ", "\t", ".", "*", ">", "/", "\\", ":"]
    REPLACEMENT_CHAR: ClassVar[str] = "_"
    SEPARATOR: ClassVar[str] = "__"

    @classmethod
    def sanitize(cls, segment: str) -> str:
        """Replace invalid characters in one segment.

        Raises:
            ValueError: If the segment is empty or only whitespace
        """
        if not segment.strip():
            raise ValueError("Key segment cannot be empty or contain only whitespace")

        sanitized = segment
        for char in cls.INVALID_CHARS:
            sanitized = sanitized.replace(char, cls.REPLACEMENT_CHAR)
        return sanitized

    @classmethod
    def is_valid(cls, key: str) -> bool:
        return bool(key) and not any(char in key for char in cls.INVALID_CHARS)

    @classmethod
    def to_key(cls, key_path: KeyPath) -> str:
        """``users/u1/lists/taskList`` -> ``users__u1__lists__taskList``."""
        return cls.SEPARATOR.join(cls.sanitize(segment) for segment in key_path.segments)
