"""Loading-state machine for asynchronous fetches and mutations.

Four immutable variants. ``Loading`` and ``Failure`` carry the last good
``data`` forward so a consumer can keep rendering it under a spinner or an
error banner. No state is terminal; every state may move to any other.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

from .enums import LoadingStatus
from .exceptions import AppError
from .result import Ok, Result

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Idle:
    """Nothing requested yet."""

    @property
    def status(self) -> LoadingStatus:
        return LoadingStatus.IDLE


@dataclass(frozen=True, slots=True)
class Loading(Generic[T]):
    """Request in flight; ``data`` is the value held before the request."""

    data: T | None = None
    is_optimistic: bool = False
    stage: str | None = None
    progress: float | None = None

    def __post_init__(self) -> None:
        if self.progress is not None:
            object.__setattr__(self, "progress", min(100.0, max(0.0, float(self.progress))))

    @property
    def status(self) -> LoadingStatus:
        return LoadingStatus.LOADING


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    data: T

    @property
    def status(self) -> LoadingStatus:
        return LoadingStatus.SUCCESS


@dataclass(frozen=True, slots=True)
class Failure(Generic[T]):
    """Request failed; ``data`` is the value held before the request."""

    error: AppError
    data: T | None = None
    is_optimistic: bool = False

    @property
    def status(self) -> LoadingStatus:
        return LoadingStatus.ERROR


LoadingState: TypeAlias = Idle | Loading[T] | Success[T] | Failure[T]


# State constructors


def idle() -> Idle:
    return Idle()


def loading(data: T | None = None, is_optimistic: bool = False) -> Loading[T]:
    return Loading(data=data, is_optimistic=is_optimistic)


def loading_with_progress(
    data: T | None = None,
    is_optimistic: bool = False,
    stage: str | None = None,
    progress: float | None = None,
) -> Loading[T]:
    """Loading state for multi-step operations, e.g. stage ``"Saving"`` at 50%."""
    return Loading(data=data, is_optimistic=is_optimistic, stage=stage, progress=progress)


def optimistic_loading(data: T) -> Loading[T]:
    return Loading(data=data, is_optimistic=True)


def success(data: T) -> Success[T]:
    return Success(data)


def error_state(error: AppError, data: T | None = None, is_optimistic: bool = False) -> Failure[T]:
    return Failure(error=error, data=data, is_optimistic=is_optimistic)


# Guards


def is_idle(state: LoadingState[T]) -> bool:
    return isinstance(state, Idle)


def is_loading(state: LoadingState[T]) -> bool:
    return isinstance(state, Loading)


def is_success(state: LoadingState[T]) -> bool:
    return isinstance(state, Success)


def has_error(state: LoadingState[T]) -> bool:
    return isinstance(state, Failure)


def has_data(state: LoadingState[T]) -> bool:
    return get_data(state) is not None


def is_optimistic(state: LoadingState[T]) -> bool:
    return isinstance(state, Loading | Failure) and state.is_optimistic


def is_initial_loading(state: LoadingState[T]) -> bool:
    return isinstance(state, Loading) and not state.is_optimistic


def is_optimistic_loading(state: LoadingState[T]) -> bool:
    return isinstance(state, Loading) and state.is_optimistic


# Accessors


def get_data(state: LoadingState[T]) -> T | None:
    if isinstance(state, Idle):
        return None
    return state.data


def get_error(state: LoadingState[T]) -> AppError | None:
    return state.error if isinstance(state, Failure) else None


def get_current_data(state: LoadingState[T]) -> T | None:
    """Best available data in any phase.

    ``Success`` yields its data, ``Loading`` and ``Failure`` yield the value
    they retained from before the transition, ``Idle`` yields ``None``.
    """
    return get_data(state)


def get_stage(state: LoadingState[T]) -> str | None:
    return state.stage if isinstance(state, Loading) else None


def get_progress(state: LoadingState[T]) -> float | None:
    return state.progress if isinstance(state, Loading) else None


# Transitions and transforms


def to_loading(state: LoadingState[T], is_optimistic: bool = False) -> Loading[T]:
    """Enter ``Loading`` keeping whatever data the current state holds."""
    return Loading(data=get_current_data(state), is_optimistic=is_optimistic)


def from_result(result: Result[T, AppError], previous_data: T | None = None) -> LoadingState[T]:
    if isinstance(result, Ok):
        return Success(result.value)
    return Failure(error=result.error, data=previous_data)


def map_loading_state(state: LoadingState[T], mapper: Callable[[T], U]) -> LoadingState[U]:
    """Apply ``mapper`` to carried data, preserving the variant and its flags."""
    if isinstance(state, Loading):
        return Loading(
            data=mapper(state.data) if state.data is not None else None,
            is_optimistic=state.is_optimistic,
            stage=state.stage,
            progress=state.progress,
        )
    if isinstance(state, Success):
        return Success(mapper(state.data))
    if isinstance(state, Failure):
        return Failure(
            error=state.error,
            data=mapper(state.data) if state.data is not None else None,
            is_optimistic=state.is_optimistic,
        )
    return Idle()


def combine_loading_states(states: Sequence[LoadingState[T]]) -> LoadingState[list[T]]:
    """Fold several states into one.

    The first error wins, then any loading state (with the data collected so
    far), otherwise success with every available value.
    """
    for state in states:
        if isinstance(state, Failure):
            return Failure(error=state.error)

    collected = [data for data in (get_data(state) for state in states) if data is not None]
    if any(isinstance(state, Loading) for state in states):
        return Loading(data=collected or None)
    return Success(collected)


def can_retry(state: LoadingState[T]) -> bool:
    return isinstance(state, Failure) and state.error.retryable


class MutationState:
    """Tracks one fire-and-forget mutation (save button, delete action)."""

    def __init__(self) -> None:
        self.status = LoadingStatus.IDLE
        self.error: AppError | None = None

    def set_loading(self) -> None:
        self.status = LoadingStatus.LOADING
        self.error = None

    def set_success(self) -> None:
        self.status = LoadingStatus.SUCCESS
        self.error = None

    def set_error(self, error: AppError) -> None:
        self.status = LoadingStatus.ERROR
        self.error = error

    def reset(self) -> None:
        self.status = LoadingStatus.IDLE
        self.error = None

    @property
    def is_loading(self) -> bool:
        return self.status is LoadingStatus.LOADING
