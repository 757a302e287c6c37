"""Two-variant outcome type used as the return value of every fallible operation.

Callers narrow on ``result.success`` (or ``is_ok``/``is_err``) before touching
``value`` or ``error``. There is deliberately no ``unwrap``.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, Literal, TypeAlias, TypeGuard, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful outcome."""

    value: T

    @property
    def success(self) -> Literal[True]:
        return True


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed outcome."""

    error: E

    @property
    def success(self) -> Literal[False]:
        return False


Result: TypeAlias = Union[Ok[T], Err[E]]  # noqa: UP007


def ok(value: T) -> Ok[T]:
    """Construct a success result."""
    return Ok(value)


def err(error: E) -> Err[E]:
    """Construct a failure result."""
    return Err(error)


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    return isinstance(result, Err)


def map_result(result: Result[T, E], fn: Callable[[T], U]) -> Result[U, E]:
    """Apply ``fn`` to a success value, passing failures through unchanged."""
    if isinstance(result, Ok):
        return Ok(fn(result.value))
    return result


def and_then(result: Result[T, E], fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
    """Chain another fallible step onto a success value."""
    if isinstance(result, Ok):
        return fn(result.value)
    return result


async def wrap_async_operation(
    operation: Callable[[], Awaitable[T]],
    error_mapper: Callable[[Exception, str], E],
    context: str,
) -> Result[T, E]:
    """Await ``operation`` and convert a raised exception into ``Err``.

    Args:
        operation: Zero-argument coroutine factory
        error_mapper: Maps the caught exception and context to an error value
        context: Context string handed to the mapper

    Returns:
        Result: ``Ok`` with the awaited value or ``Err`` with the mapped error
    """
    try:
        return Ok(await operation())
    except Exception as e:
        return Err(error_mapper(e, context))


def wrap_sync_operation(
    operation: Callable[[], T],
    error_mapper: Callable[[Exception, str], E],
    context: str,
) -> Result[T, E]:
    """Synchronous counterpart of :func:`wrap_async_operation`."""
    try:
        return Ok(operation())
    except Exception as e:
        return Err(error_mapper(e, context))


__all__ = [
    "Err",
    "Ok",
    "Result",
    "and_then",
    "err",
    "is_err",
    "is_ok",
    "map_result",
    "ok",
    "wrap_async_operation",
    "wrap_sync_operation",
]

