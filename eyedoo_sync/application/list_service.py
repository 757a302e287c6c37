"""List service - input validation and business limits in front of a list repository."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from ..domain.enums import ListScope
from ..domain.error_context import ErrorContext
from ..domain.error_mapper import ErrorMapper
from ..domain.exceptions import AppError
from ..domain.models import ListItem, ScopedList
from ..domain.result import Err, Ok, Result
from ..domain.sanitization import sanitize_string
from ..domain.validation import validate_partial_with_schema, validate_with_schema
from ..ports.document_store import Subscription
from ..ports.list_repository import ListRepositoryPort, ListUpdateCallback
from ..ports.logger import LoggerPort

ItemT = TypeVar("ItemT", bound=ListItem)

MAX_ITEMS_PER_LIST = 500
MAX_ITEMS_PER_CATEGORY = 100

_TEXT_KEYS = ("item_name", "itemName", "item_description", "itemDescription")


def _sanitize_text(value: Any) -> Any:
    """Clean a string but keep the original if cleaning would empty it."""
    if not isinstance(value, str):
        return value
    return sanitize_string(value) or value


class ListService(Generic[ItemT]):
    """Validates inputs against the list and item schemas, then delegates.

    Item additions are checked against the per-list and per-category limits
    using a fresh read of the target list.
    """

    def __init__(
        self,
        repository: ListRepositoryPort[ItemT],
        item_schema: type[ItemT],
        service_name: str = "ListService",
        logger: LoggerPort | None = None,
    ):
        """Initialize the service.

        Args:
            repository: Repository for one list type
            item_schema: Pydantic model of one item of that type
            service_name: Component name used in error contexts
            logger: Optional logger for rejected operations
        """
        self._repository = repository
        self._item_schema = item_schema
        self._list_schema = ScopedList[item_schema]  # type: ignore[valid-type]
        self._service_name = service_name
        self._logger = logger

    def _context(self, method: str, scope: ListScope, owner_id: str | None) -> str:
        return ErrorContext.from_service(
            self._service_name,
            method,
            user_id=owner_id if scope is ListScope.USER else None,
            project_id=owner_id if scope is ListScope.PROJECT else None,
        ).to_context_string()

    def _reject(self, error: AppError) -> Err[AppError]:
        if self._logger is not None:
            self._logger.warning(
                f"{error.context}: {error.message}",
                error_code=error.code.value,
                component=self._service_name,
            )
        return Err(error)

    def _validate_list(
        self, data: ScopedList[ItemT] | dict[str, Any], context: str
    ) -> Result[ScopedList[ItemT], AppError]:
        validation = validate_with_schema(self._list_schema, data, context)
        if isinstance(validation, Err):
            return self._reject(validation.error)
        return validation

    def _check_item_limits(
        self, current: ScopedList[ItemT], item: ItemT, context: str
    ) -> Result[None, AppError]:
        if len(current.items) >= MAX_ITEMS_PER_LIST:
            return Err(
                ErrorMapper.validation_failed(
                    "Maximum items limit reached",
                    context,
                    f"List has reached the maximum of {MAX_ITEMS_PER_LIST} items. "
                    "Please remove some items before adding new ones.",
                )
            )

        if item.category_id:
            category = next((c for c in current.categories if c.id == item.category_id), None)
            if category is None:
                return Err(
                    ErrorMapper.validation_failed(
                        "Category does not exist",
                        context,
                        f'Category with ID "{item.category_id}" does not exist in this list.',
                    )
                )
            in_category = sum(1 for i in current.items if i.category_id == item.category_id)
            if in_category >= MAX_ITEMS_PER_CATEGORY:
                return Err(
                    ErrorMapper.validation_failed(
                        "Maximum items per category reached",
                        context,
                        f'Category "{category.cat_name}" has reached the maximum of '
                        f"{MAX_ITEMS_PER_CATEGORY} items. Please remove some items from "
                        "this category before adding new ones.",
                    )
                )
        return Ok(None)

    async def get_list(
        self, scope: ListScope, owner_id: str | None = None
    ) -> Result[ScopedList[ItemT], AppError]:
        return await self._repository.get_list(scope, owner_id)

    async def save_list(
        self, scope: ListScope, owner_id: str | None, data: ScopedList[ItemT] | dict[str, Any]
    ) -> Result[None, AppError]:
        validation = self._validate_list(data, self._context("save_list", scope, owner_id))
        if isinstance(validation, Err):
            return validation
        return await self._repository.save_list(scope, owner_id, validation.value)

    async def create_or_reset_list(
        self, scope: ListScope, owner_id: str, source: ScopedList[ItemT] | dict[str, Any]
    ) -> Result[None, AppError]:
        validation = self._validate_list(
            source, self._context("create_or_reset_list", scope, owner_id)
        )
        if isinstance(validation, Err):
            return validation
        return await self._repository.create_or_reset_list(scope, owner_id, validation.value)

    async def delete_list(self, scope: ListScope, owner_id: str) -> Result[None, AppError]:
        return await self._repository.delete_list(scope, owner_id)

    async def add_item(
        self, scope: ListScope, owner_id: str | None, item: ItemT | dict[str, Any]
    ) -> Result[ItemT, AppError]:
        """Validate, sanitize and limit-check an item before adding it."""
        context = self._context("add_item", scope, owner_id)
        validation = validate_with_schema(self._item_schema, item, context)
        if isinstance(validation, Err):
            return self._reject(validation.error)
        sanitized = validation.value.model_copy(
            update={
                "item_name": _sanitize_text(validation.value.item_name),
                "item_description": _sanitize_text(validation.value.item_description),
            }
        )

        current = await self._repository.get_list(scope, owner_id)
        if isinstance(current, Err):
            return current

        limits = self._check_item_limits(current.value, sanitized, context)
        if isinstance(limits, Err):
            return self._reject(limits.error)

        return await self._repository.add_item(scope, owner_id, sanitized)

    async def delete_item(
        self, scope: ListScope, owner_id: str | None, item_id: str
    ) -> Result[None, AppError]:
        return await self._repository.delete_item(scope, owner_id, item_id)

    async def batch_update_items(
        self, scope: ListScope, owner_id: str | None, updates: list[dict[str, Any]]
    ) -> Result[None, AppError]:
        """Sanitize text fields and check each patch before one repository write."""
        context = self._context("batch_update_items", scope, owner_id)
        sanitized_updates: list[dict[str, Any]] = []
        for update in updates:
            if not isinstance(update.get("id"), str) or not update["id"]:
                return self._reject(
                    ErrorMapper.validation_failed("Every update must carry an item id", context)
                )
            patch = {
                key: _sanitize_text(value) if key in _TEXT_KEYS else value
                for key, value in update.items()
            }
            validation = validate_partial_with_schema(self._item_schema, patch, context)
            if isinstance(validation, Err):
                return self._reject(validation.error)
            sanitized_updates.append(patch)
        return await self._repository.batch_update_items(scope, owner_id, sanitized_updates)

    async def batch_delete_items(
        self, scope: ListScope, owner_id: str | None, item_ids: list[str]
    ) -> Result[None, AppError]:
        return await self._repository.batch_delete_items(scope, owner_id, item_ids)

    async def subscribe_to_list(
        self, scope: ListScope, owner_id: str | None, on_update: ListUpdateCallback
    ) -> Result[Subscription, AppError]:
        return await self._repository.subscribe_to_list(scope, owner_id, on_update)

    # Named entry points

    async def get_master(self) -> Result[ScopedList[ItemT], AppError]:
        return await self.get_list(ListScope.MASTER)

    async def upsert_master(self, data: ScopedList[ItemT]) -> Result[None, AppError]:
        return await self.save_list(ListScope.MASTER, None, data)

    async def get_user_list(self, user_id: str) -> Result[ScopedList[ItemT], AppError]:
        return await self.get_list(ListScope.USER, user_id)

    async def add_user_item(self, user_id: str, item: ItemT) -> Result[ItemT, AppError]:
        return await self.add_item(ListScope.USER, user_id, item)

    async def get_project_list(self, project_id: str) -> Result[ScopedList[ItemT], AppError]:
        return await self.get_list(ListScope.PROJECT, project_id)

    async def add_project_item(self, project_id: str, item: ItemT) -> Result[ItemT, AppError]:
        return await self.add_item(ListScope.PROJECT, project_id, item)
