"""Optimistic-update engine with automatic rollback.

A tentative value is published before the confirming operation runs. On
failure the exact prior value is published again; on success nothing is
republished, the operation or its consumer is expected to refresh from the
store because the server may normalize fields.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from pydantic import BaseModel

from ..domain.enums import OperationKind
from ..domain.error_mapper import ErrorMapper
from ..domain.exceptions import AppError
from ..domain.models import ListItem, OptimisticUpdate, ScopedList
from ..domain.result import Err, Result
from ..infrastructure.simple_logger import SimpleLogger
from ..ports.logger import LoggerPort

T = TypeVar("T")
ItemT = TypeVar("ItemT", bound=ListItem)

Publish = Callable[[T], None]
Operation = Callable[[T], Awaitable[Result[Any, AppError]]]
OnSuccess = Callable[[Any], None]
OnError = Callable[[AppError, T], None]


def merge_changes(current: T, changes: Mapping[str, Any]) -> T:
    """Shallow merge of ``changes`` into a model or mapping."""
    if isinstance(current, BaseModel):
        return current.model_copy(update=dict(changes))
    if isinstance(current, Mapping):
        return {**current, **changes}  # type: ignore[return-value]
    raise TypeError(f"Cannot apply changes to {type(current).__name__}")


class OptimisticUpdater:
    """Runs optimistic mutations for one consumer.

    Call :meth:`dispose` when the consumer goes away; results arriving after
    that are dropped without publishing or invoking callbacks.
    """

    def __init__(self, logger: LoggerPort | None = None, context: str = "OptimisticUpdater"):
        self._logger = logger or SimpleLogger("eyedoo_sync.optimistic_update")
        self._context = context
        self._mounted = True

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def dispose(self) -> None:
        self._mounted = False

    async def apply(
        self,
        kind: OperationKind,
        current: T,
        optimistic: T,
        publish: Publish[T],
        operation: Operation[T],
        on_success: OnSuccess | None = None,
        on_error: OnError[T] | None = None,
    ) -> OptimisticUpdate[T]:
        """Publish ``optimistic``, confirm it, and roll back on failure.

        Args:
            kind: Mutation being performed
            current: Last confirmed value, restored on failure
            optimistic: Tentative value published immediately
            publish: Sink for values shown to the consumer
            operation: Confirms the tentative value against the store
            on_success: Receives the operation's value
            on_error: Receives the mapped error and the rollback value

        Returns:
            OptimisticUpdate: Envelope resolved to SUCCESS or FAILED
        """
        update = OptimisticUpdate(
            operation_kind=kind, applied_value=optimistic, rollback_value=current
        )
        publish(optimistic)

        try:
            result = await operation(optimistic)
        except Exception as e:
            result = Err(ErrorMapper.from_unknown(e, f"{self._context}.{kind.value.lower()}"))

        if not self._mounted:
            update.resolve(result.error if isinstance(result, Err) else None)
            self._logger.debug(
                f"Discarding {kind.value} result after dispose", component=self._context
            )
            return update

        if isinstance(result, Err):
            publish(current)
            update.resolve(result.error)
            self._logger.warning(
                f"Optimistic {kind.value} rolled back: {result.error.message}",
                component=self._context,
                error_code=result.error.code.value,
                retryable=result.error.retryable,
            )
            if on_error is not None:
                on_error(result.error, current)
            return update

        update.resolve()
        if on_success is not None:
            on_success(result.value)
        return update

    async def apply_update(
        self,
        current: T,
        changes: Mapping[str, Any],
        publish: Publish[T],
        operation: Operation[T],
        on_success: OnSuccess | None = None,
        on_error: OnError[T] | None = None,
    ) -> OptimisticUpdate[T]:
        """Merge ``changes`` into ``current`` and confirm the result."""
        return await self.apply(
            OperationKind.UPDATE,
            current,
            merge_changes(current, changes),
            publish,
            operation,
            on_success,
            on_error,
        )

    async def apply_add(
        self,
        current: ScopedList[ItemT],
        item: ItemT,
        publish: Publish[ScopedList[ItemT]],
        operation: Operation[ScopedList[ItemT]],
        on_success: OnSuccess | None = None,
        on_error: OnError[ScopedList[ItemT]] | None = None,
    ) -> OptimisticUpdate[ScopedList[ItemT]]:
        """Append ``item`` to the displayed list while the add is confirmed."""
        optimistic = current.model_copy(update={"items": [*current.items, item]})
        return await self.apply(
            OperationKind.ADD, current, optimistic, publish, operation, on_success, on_error
        )

    async def apply_delete(
        self,
        current: ScopedList[ItemT],
        item_id: str,
        publish: Publish[ScopedList[ItemT]],
        operation: Operation[ScopedList[ItemT]],
        on_success: OnSuccess | None = None,
        on_error: OnError[ScopedList[ItemT]] | None = None,
    ) -> OptimisticUpdate[ScopedList[ItemT]]:
        """Hide ``item_id`` from the displayed list while the delete is confirmed."""
        optimistic = current.model_copy(
            update={"items": [item for item in current.items if item.id != item_id]}
        )
        return await self.apply(
            OperationKind.DELETE, current, optimistic, publish, operation, on_success, on_error
        )
