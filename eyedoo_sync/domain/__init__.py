"""Domain layer: results, errors, loading state, validation and list models."""

from .enums import ErrorCode, ListScope, ListSource, ListType
from .error_mapper import ErrorMapper
from .exceptions import (
    AggregatedError,
    AppError,
    AuthError,
    NetworkError,
    RemoteStoreError,
    ValidationError,
)
from .key_paths import KeyPath
from .result import Err, Ok, Result, err, is_err, is_ok, ok

__all__ = [
    "AggregatedError",
    "AppError",
    "AuthError",
    "Err",
    "ErrorCode",
    "ErrorMapper",
    "KeyPath",
    "ListScope",
    "ListSource",
    "ListType",
    "NetworkError",
    "Ok",
    "RemoteStoreError",
    "Result",
    "ValidationError",
    "err",
    "is_err",
    "is_ok",
    "ok",
]
