"""Mapping of raw platform failures into ``AppError`` values.

Nothing here logs or raises; every function only builds an error object.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as SchemaValidationError

from .enums import ErrorCode
from .exceptions import (
    AggregatedError,
    AppError,
    AuthError,
    NetworkError,
    OperationFailure,
    RemoteStoreError,
    ValidationError,
)

GENERAL_FIELD = "general"

_SUBTYPE_BY_DOMAIN: dict[str, type[AppError]] = {
    "NET": NetworkError,
    "DB": RemoteStoreError,
    "AUTH": AuthError,
}


def _field_errors(exc: SchemaValidationError) -> dict[str, str]:
    """Flatten pydantic issues to ``{"dotted.path": "message"}``.

    The first message for a path wins.
    """
    field_errors: dict[str, str] = {}
    for issue in exc.errors():
        path = ".".join(str(segment) for segment in issue.get("loc", ())) or GENERAL_FIELD
        field_errors.setdefault(path, issue.get("msg", "Invalid value"))
    return field_errors


class ErrorMapper:
    """Static constructors for structured errors."""

    @staticmethod
    def create_generic_error(
        code: ErrorCode,
        message: str,
        user_message: str,
        context: str | None = None,
        metadata: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> AppError:
        """Build an error whose subtype is chosen from the code prefix.

        Codes without a dedicated subtype fall back to ``RemoteStoreError``.
        """
        error_cls = _SUBTYPE_BY_DOMAIN.get(code.domain, RemoteStoreError)
        return error_cls(
            code,
            message,
            user_message,
            context=context,
            metadata=metadata,
            retryable=retryable,
        )

    @staticmethod
    def from_remote_store(error: BaseException | Any, context: str) -> RemoteStoreError:
        """Classify a raw remote-store failure.

        Inspects a ``code`` attribute when the adapter supplied one, otherwise
        the message text. Unrecognized failures are treated as transient.
        """
        message = str(error) if error is not None else "An unknown remote store error occurred"
        code_hint = getattr(error, "code", None)
        probe = f"{code_hint or ''} {message}".lower()

        code = ErrorCode.DB_NETWORK_ERROR
        user_message = "A database error occurred. Please try again."
        retryable = True

        if "permission-denied" in probe:
            code = ErrorCode.DB_PERMISSION_DENIED
            user_message = "You do not have permission to perform this action."
            retryable = False
        elif "not-found" in probe:
            code = ErrorCode.DB_NOT_FOUND
            user_message = "The requested data was not found."
            retryable = False
        elif "unavailable" in probe:
            code = ErrorCode.DB_NETWORK_ERROR
            user_message = "Service temporarily unavailable. Please try again."
            retryable = True

        return RemoteStoreError(
            code,
            f"Remote store error: {message}",
            user_message,
            context=context,
            metadata={"original_error": type(error).__name__},
            retryable=retryable,
        )

    @staticmethod
    def from_schema_validation(exc: SchemaValidationError, context: str) -> ValidationError:
        """Convert a pydantic validation failure into a ``ValidationError``."""
        field_errors = _field_errors(exc)
        return ValidationError(
            ErrorCode.VALIDATION_FAILED,
            f"Validation failed: {exc.error_count()} issue(s) for {exc.title}",
            "Please check the form for errors.",
            context=context,
            metadata={"field_errors": field_errors},
            retryable=False,
        )

    @staticmethod
    def validation_failed(
        message: str, context: str, user_message: str | None = None
    ) -> ValidationError:
        """Validation failure that is not tied to a schema field."""
        return ValidationError(
            ErrorCode.VALIDATION_FAILED,
            message or "Validation failed",
            user_message or message or "Please check the form for errors.",
            context=context,
            metadata={"field_errors": {GENERAL_FIELD: message}},
            retryable=False,
        )

    @staticmethod
    def data_integrity(error: ValidationError, context: str) -> ValidationError:
        """Stored document failed defensive parsing.

        Keeps the field errors but marks the failure as a store-side problem
        the user cannot fix by editing input.
        """
        return ValidationError(
            ErrorCode.DB_VALIDATION_ERROR,
            f"Stored data failed validation: {error.message}",
            "Some saved data could not be read. Please contact support.",
            context=context,
            metadata=dict(error.metadata),
            retryable=False,
        )

    @staticmethod
    def create_aggregated_error(
        code: ErrorCode,
        message: str,
        user_message: str,
        context: str,
        failures: list[OperationFailure],
        success_count: int = 0,
    ) -> AggregatedError:
        return AggregatedError(
            code,
            message,
            user_message,
            context=context,
            errors=list(failures),
            success_count=success_count,
        )

    @staticmethod
    def user_not_found(context: str) -> AuthError:
        return AuthError(
            ErrorCode.AUTH_USER_NOT_FOUND,
            "User not found",
            "User not found",
            context=context,
        )

    @staticmethod
    def entity_not_found(context: str, entity: str = "Document") -> RemoteStoreError:
        return RemoteStoreError(
            ErrorCode.DB_NOT_FOUND,
            f"{entity} not found",
            f"{entity} not found",
            context=context,
        )

    @staticmethod
    def project_not_found(context: str) -> RemoteStoreError:
        return RemoteStoreError(
            ErrorCode.DB_NOT_FOUND,
            "Project document not found",
            "Project not found",
            context=context,
        )

    @staticmethod
    def list_not_found(context: str) -> RemoteStoreError:
        return RemoteStoreError(
            ErrorCode.DB_NOT_FOUND,
            "List document not found",
            "List not found",
            context=context,
        )

    @staticmethod
    def from_network(error: BaseException | dict[str, Any], context: str) -> NetworkError:
        """Map a connectivity failure or an upstream API error payload."""
        message = "A network error occurred"
        user_message = "A network error occurred. Please check your connection and try again."
        code = ErrorCode.NETWORK_CONNECTION_ERROR
        retryable = True

        if isinstance(error, TimeoutError):
            code = ErrorCode.NETWORK_TIMEOUT
            message = str(error) or "Request timed out"
        elif isinstance(error, BaseException):
            message = str(error) or message
        elif isinstance(error, dict):
            message = error.get("message") or message
            if error.get("code") in ("API_KEY_MISSING", "NO_RESULTS"):
                code = ErrorCode.NETWORK_SERVER_ERROR
                user_message = error.get("message") or user_message
                retryable = False
            elif error.get("code") in ("API_ERROR", "INVALID_GEOMETRY"):
                code = ErrorCode.NETWORK_SERVER_ERROR
                retryable = False

        return NetworkError(code, message, user_message, context=context, retryable=retryable)

    @staticmethod
    def from_unknown(error: BaseException | Any, context: str) -> AppError:
        """Map anything else. ``AppError`` instances pass through unchanged."""
        if isinstance(error, AppError):
            return error
        if isinstance(error, SchemaValidationError):
            return ErrorMapper.from_schema_validation(error, context)
        message = str(error) if isinstance(error, BaseException) else "An unknown error occurred"
        return NetworkError(
            ErrorCode.NETWORK_CONNECTION_ERROR,
            message or "An unknown error occurred",
            "An unexpected error occurred. Please try again.",
            context=context,
            metadata={"original_error": type(error).__name__},
            retryable=True,
        )
