"""Consumer-side driver for one scoped list.

Holds the list's ``LoadingState`` and pushes every transition to an
``on_change`` callback. Mutations go through the optimistic updater and are
followed by a fresh fetch, so the confirmed state always comes from the store.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar

from ..domain.enums import ListScope, OperationKind
from ..domain.error_context import ErrorContext
from ..domain.error_mapper import ErrorMapper
from ..domain.exceptions import AppError
from ..domain.loading_state import (
    LoadingState,
    Success,
    error_state,
    get_current_data,
    idle,
    loading_with_progress,
    optimistic_loading,
    to_loading,
)
from ..domain.models import ListItem, ScopedList
from ..domain.result import Err, Ok, Result
from ..infrastructure.simple_logger import SimpleLogger
from ..ports.document_store import Subscription
from ..ports.logger import LoggerPort
from .list_service import ListService
from .optimistic_update import OptimisticUpdater

ItemT = TypeVar("ItemT", bound=ListItem)

StateListener = Callable[[LoadingState[ScopedList[Any]]], None]


class ListController(Generic[ItemT]):
    """Loads, watches and mutates a single list on behalf of one consumer.

    After :meth:`dispose` no further state is published, even for requests
    that were already in flight.
    """

    def __init__(
        self,
        service: ListService[ItemT],
        scope: ListScope,
        owner_id: str | None = None,
        on_change: StateListener | None = None,
        logger: LoggerPort | None = None,
    ):
        self._service = service
        self._scope = scope
        self._owner_id = owner_id
        self._on_change = on_change
        self._logger = logger or SimpleLogger("eyedoo_sync.list_controller")
        self._updater = OptimisticUpdater(self._logger, context="ListController")
        self._state: LoadingState[ScopedList[ItemT]] = idle()
        self._subscription: Subscription | None = None
        self._mounted = True

    @property
    def state(self) -> LoadingState[ScopedList[ItemT]]:
        return self._state

    @property
    def data(self) -> ScopedList[ItemT] | None:
        return get_current_data(self._state)

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    def _context(self, method: str) -> str:
        return ErrorContext.from_service(
            "ListController",
            method,
            user_id=self._owner_id if self._scope is ListScope.USER else None,
            project_id=self._owner_id if self._scope is ListScope.PROJECT else None,
        ).to_context_string()

    def _publish(self, state: LoadingState[ScopedList[ItemT]]) -> None:
        if not self._mounted:
            return
        self._state = state
        if self._on_change is not None:
            self._on_change(state)

    async def _load(self, stage: str) -> Result[ScopedList[ItemT], AppError]:
        previous = get_current_data(self._state)
        if previous is None:
            self._publish(to_loading(self._state))
        else:
            self._publish(loading_with_progress(previous, stage=stage))

        result = await self._service.get_list(self._scope, self._owner_id)
        if not self._mounted:
            return result

        if isinstance(result, Ok):
            self._publish(Success(result.value))
        else:
            self._publish(error_state(result.error, data=previous))
        return result

    async def fetch(self) -> Result[ScopedList[ItemT], AppError]:
        """Load the list, keeping any data already shown while in flight."""
        return await self._load("fetching")

    async def refresh(self) -> Result[ScopedList[ItemT], AppError]:
        return await self._load("refreshing")

    def _on_snapshot(self, result: Result[ScopedList[ItemT] | None, AppError]) -> None:
        if isinstance(result, Err):
            self._publish(error_state(result.error, data=get_current_data(self._state)))
        elif result.value is None:
            self._publish(idle())
        else:
            self._publish(Success(result.value))

    async def subscribe(self) -> Result[None, AppError]:
        """Follow live changes until :meth:`dispose`; a second call is a no-op."""
        if self._subscription is not None and self._subscription.is_active:
            return Ok(None)
        result = await self._service.subscribe_to_list(
            self._scope, self._owner_id, self._on_snapshot
        )
        if isinstance(result, Err):
            self._publish(error_state(result.error, data=get_current_data(self._state)))
            return result
        if not self._mounted:
            await result.value.unsubscribe()
            return Ok(None)
        self._subscription = result.value
        return Ok(None)

    async def dispose(self) -> None:
        """Stop publishing and release the live subscription."""
        self._mounted = False
        self._updater.dispose()
        if self._subscription is not None:
            await self._subscription.unsubscribe()
            self._subscription = None

    def _require_loaded(self, method: str) -> Result[ScopedList[ItemT], AppError]:
        current = get_current_data(self._state)
        if current is None:
            return Err(
                ErrorMapper.validation_failed(
                    "List has not been loaded",
                    self._context(method),
                    "Please wait for the list to load.",
                )
            )
        return Ok(current)

    async def _mutate(
        self,
        kind: OperationKind,
        current: ScopedList[ItemT],
        optimistic: ScopedList[ItemT],
        operation: Callable[[], Any],
    ) -> Result[None, AppError]:
        def on_error(error: AppError, rollback: ScopedList[ItemT]) -> None:
            self._publish(error_state(error, data=rollback))

        update = await self._updater.apply(
            kind,
            current,
            optimistic,
            lambda value: self._publish(optimistic_loading(value)),
            lambda _: operation(),
            on_error=on_error,
        )
        if update.error is not None:
            return Err(update.error)
        if self._mounted:
            await self.fetch()
        return Ok(None)

    async def add_item(self, item: ItemT) -> Result[None, AppError]:
        current = self._require_loaded("add_item")
        if isinstance(current, Err):
            return current
        optimistic = current.value.model_copy(update={"items": [*current.value.items, item]})
        return await self._mutate(
            OperationKind.ADD,
            current.value,
            optimistic,
            lambda: self._service.add_item(self._scope, self._owner_id, item),
        )

    async def update_item(self, item_id: str, changes: dict[str, Any]) -> Result[None, AppError]:
        """Apply ``changes`` (keyed by field name) to one item."""
        current = self._require_loaded("update_item")
        if isinstance(current, Err):
            return current
        existing = current.value.find_item(item_id)
        if existing is None:
            return Err(ErrorMapper.entity_not_found(self._context("update_item"), "Item"))
        updated_item = existing.model_copy(update=changes)
        optimistic = current.value.model_copy(
            update={
                "items": [
                    updated_item if item.id == item_id else item for item in current.value.items
                ]
            }
        )
        return await self._mutate(
            OperationKind.UPDATE,
            current.value,
            optimistic,
            lambda: self._service.batch_update_items(
                self._scope, self._owner_id, [{**changes, "id": item_id}]
            ),
        )

    async def delete_item(self, item_id: str) -> Result[None, AppError]:
        current = self._require_loaded("delete_item")
        if isinstance(current, Err):
            return current
        optimistic = current.value.model_copy(
            update={"items": [item for item in current.value.items if item.id != item_id]}
        )
        return await self._mutate(
            OperationKind.DELETE,
            current.value,
            optimistic,
            lambda: self._service.delete_item(self._scope, self._owner_id, item_id),
        )

