"""Recovery strategies for Result-returning operations.

Each helper wraps a zero-argument coroutine factory returning a ``Result``
and gives back a ``Result``; none of them raise for operation failures.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from ..domain.enums import CircuitState, ErrorCode
from ..domain.error_mapper import ErrorMapper
from ..domain.exceptions import AppError
from ..domain.result import Err, Ok, Result
from ..domain.sanitization import UNSET
from ..infrastructure.config import RetryConfig
from ..infrastructure.simple_logger import SimpleLogger
from ..infrastructure.system_clock import SystemClock
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort

T = TypeVar("T")

ResultFactory = Callable[[], Awaitable[Result[T, AppError]]]

COMPONENT = "ErrorRecovery"

_default_logger = SimpleLogger("eyedoo_sync.error_recovery")


async def with_retry(
    operation: ResultFactory[T],
    config: RetryConfig | None = None,
    logger: LoggerPort | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> Result[T, AppError]:
    """Repeat ``operation`` while it fails with a retryable error.

    Args:
        operation: Factory producing a fresh attempt
        config: Attempt count and backoff; defaults to ``RetryConfig()``
        logger: Optional logger port
        sleep: Awaitable delay, replaceable in tests

    Returns:
        Result: The first success, or the last failure
    """
    config = config or RetryConfig()
    logger = logger or _default_logger
    attempt = 1
    while True:
        result = await operation()
        if isinstance(result, Ok):
            if attempt > 1:
                logger.info(
                    f"Operation succeeded on attempt {attempt}",
                    component=COMPONENT,
                    attempts=attempt,
                )
            return result

        if not result.error.retryable:
            logger.info(
                f"Operation failed with non-retryable error on attempt {attempt}",
                component=COMPONENT,
                error_code=result.error.code.value,
            )
            return result

        if attempt >= config.max_attempts:
            logger.warning(
                f"Operation failed after {config.max_attempts} attempts",
                component=COMPONENT,
                error_code=result.error.code.value,
            )
            return result

        delay = config.delay_for_attempt(attempt)
        logger.info(
            f"Retrying operation in {delay:.3f}s "
            f"(attempt {attempt + 1}/{config.max_attempts})",
            component=COMPONENT,
        )
        await sleep(delay)
        attempt += 1


async def with_fallback(
    operation: ResultFactory[T], fallback_value: T, logger: LoggerPort | None = None
) -> Result[T, AppError]:
    """Replace any failure with ``Ok(fallback_value)``."""
    result = await operation()
    if isinstance(result, Ok):
        return result
    (logger or _default_logger).info(
        "Operation failed, using fallback value",
        component=COMPONENT,
        error_code=result.error.code.value,
    )
    return Ok(fallback_value)


async def with_timeout(
    operation: ResultFactory[T], timeout_ms: int, logger: LoggerPort | None = None
) -> Result[T, AppError]:
    """Fail with a retryable ``NETWORK_TIMEOUT`` if ``operation`` is too slow.

    The pending attempt is cancelled. Exceptions escaping the operation are
    mapped to ``UNKNOWN_ERROR``.
    """
    logger = logger or _default_logger
    context = f"{COMPONENT}.with_timeout"
    try:
        return await asyncio.wait_for(operation(), timeout=timeout_ms / 1000)
    except TimeoutError:
        logger.warning(f"Operation timed out after {timeout_ms}ms", component=COMPONENT)
        return Err(
            ErrorMapper.create_generic_error(
                ErrorCode.NETWORK_TIMEOUT,
                f"Operation timed out after {timeout_ms}ms",
                "The operation took too long to complete. Please try again.",
                context,
                retryable=True,
            )
        )
    except Exception as e:
        logger.exception(f"Operation raised inside {context}", exc_info=e, component=COMPONENT)
        return Err(
            ErrorMapper.create_generic_error(
                ErrorCode.UNKNOWN_ERROR,
                str(e) or "Unknown error",
                "An unexpected error occurred.",
                context,
                metadata={"original_error": type(e).__name__},
                retryable=True,
            )
        )


async def with_recovery_strategies(
    operation: ResultFactory[T],
    retry: RetryConfig | None = None,
    fallback: Any = UNSET,
    timeout_ms: int | None = None,
    logger: LoggerPort | None = None,
) -> Result[T, AppError]:
    """Compose timeout (innermost), then retry, then fallback (outermost)."""
    composed: ResultFactory[T] = operation

    if timeout_ms:
        timed = composed
        composed = lambda: with_timeout(timed, timeout_ms, logger)  # noqa: E731
    if retry is not None:
        retried = composed
        composed = lambda: with_retry(retried, retry, logger)  # noqa: E731
    if fallback is not UNSET:
        guarded = composed
        composed = lambda: with_fallback(guarded, fallback, logger)  # noqa: E731

    return await composed()


class CircuitBreaker:
    """Stops calling a failing operation until a cool-down has passed.

    CLOSED counts consecutive failures; reaching ``failure_threshold`` opens
    the circuit. While OPEN, calls fail fast with ``CIRCUIT_BREAKER_OPEN``.
    After ``reset_timeout_ms`` one trial call is let through (HALF_OPEN); its
    outcome closes or reopens the circuit.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        reset_timeout_ms: int = 60000,
        clock: ClockPort | None = None,
        logger: LoggerPort | None = None,
    ):
        if failure_threshold < 1:
            raise ValueError("failure_threshold must be at least 1")
        if reset_timeout_ms < 0:
            raise ValueError("reset_timeout_ms must not be negative")
        self._failure_threshold = failure_threshold
        self._reset_timeout_ms = reset_timeout_ms
        self._clock = clock or SystemClock()
        self._logger = logger or _default_logger
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure: datetime | None = None

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def _cooled_down(self) -> bool:
        if self._last_failure is None:
            return True
        elapsed_ms = (self._clock.now() - self._last_failure).total_seconds() * 1000
        return elapsed_ms > self._reset_timeout_ms

    async def execute(self, operation: ResultFactory[T]) -> Result[T, AppError]:
        if self._state is CircuitState.OPEN:
            if not self._cooled_down():
                return Err(
                    ErrorMapper.create_generic_error(
                        ErrorCode.CIRCUIT_BREAKER_OPEN,
                        "Circuit breaker is open",
                        "Service is temporarily unavailable. Please try again later.",
                        f"{COMPONENT}.CircuitBreaker",
                        retryable=True,
                    )
                )
            self._state = CircuitState.HALF_OPEN
            self._logger.info("Circuit breaker transitioning to HALF_OPEN", component=COMPONENT)

        result = await operation()
        if isinstance(result, Ok):
            self._on_success()
        else:
            self._on_failure()
        return result

    def _on_success(self) -> None:
        self._failure_count = 0
        self._state = CircuitState.CLOSED

    def _on_failure(self) -> None:
        self._failure_count += 1
        self._last_failure = self._clock.now()
        if self._state is CircuitState.HALF_OPEN or self._failure_count >= self._failure_threshold:
            self._state = CircuitState.OPEN
            self._logger.warning(
                f"Circuit breaker opened after {self._failure_count} failures",
                component=COMPONENT,
                failure_count=self._failure_count,
            )

    def reset(self) -> None:
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._last_failure = None
