"""Domain-specific exceptions following DDD principles.

``AppError`` and its subtypes are values first: repositories return them
inside ``Err`` rather than raising them. They still derive from ``Exception``
so the recovery helpers can raise and catch them at the edges.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from .enums import ErrorCode


class AppError(Exception):
    """Structured application error.

    Attributes:
        code: Machine-readable error code
        message: Developer-facing description
        user_message: Text safe to show to an end user
        context: Where the failure happened, e.g. ``"ListRepository.get_user_list"``
        metadata: Free-form structured detail
        retryable: Whether repeating the operation may succeed
        timestamp: When the error was constructed (UTC)
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        user_message: str,
        context: str | None = None,
        metadata: dict[str, Any] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.user_message = user_message
        self.context = context
        self.metadata = metadata or {}
        self.retryable = retryable
        self.timestamp = datetime.now(UTC)

    def to_dict(self) -> dict[str, Any]:
        """Flatten to primitives for structured logging."""
        return {
            "error_code": self.code.value,
            "error_type": type(self).__name__,
            "error_message": self.message,
            "user_message": self.user_message,
            "error_context": self.context,
            "retryable": self.retryable,
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r})"


class ValidationError(AppError):
    """Input or stored data failed schema validation."""

    @property
    def field_errors(self) -> dict[str, str]:
        return self.metadata.get("field_errors", {})


class AuthError(AppError):
    """Authentication or session failure."""

    pass


class RemoteStoreError(AppError):
    """Failure reported by the remote document store."""

    pass


class NetworkError(AppError):
    """Connectivity, timeout or server failure."""

    pass


@dataclass(frozen=True)
class OperationFailure:
    """One failed sub-operation inside a batch."""

    operation: str
    error: AppError


class AggregatedError(AppError):
    """Partial failure of a batch of independent sub-operations."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        user_message: str,
        context: str | None = None,
        errors: list[OperationFailure] | None = None,
        success_count: int = 0,
    ):
        errors = errors or []
        super().__init__(
            code,
            message,
            user_message,
            context=context,
            metadata={"success_count": success_count, "failure_count": len(errors)},
            retryable=any(failure.error.retryable for failure in errors),
        )
        self.errors = errors
        self.success_count = success_count
        self.failure_count = len(errors)


class ConfigurationError(Exception):
    """Raised at construction time when a component is misconfigured."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class RepositoryConfigurationError(ConfigurationError):
    """A repository was built with an invalid configuration."""

    pass


class DocumentStoreError(Exception):
    """Raised by document store adapters; repositories map it to ``AppError``."""

    def __init__(
        self,
        message: str,
        key_path: str | None = None,
        operation: str | None = None,
        code: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.key_path = key_path
        self.operation = operation
        self.code = code
        self.details: dict[str, Any] = {}
        if key_path:
            self.details["key_path"] = key_path
        if operation:
            self.details["operation"] = operation
        if code:
            self.details["code"] = code


class SerializationError(DocumentStoreError):
    """A document could not be encoded or decoded."""

    pass
