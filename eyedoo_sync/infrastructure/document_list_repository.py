"""Generic scoped-list repository backed by a DocumentStorePort.

One engine serves every list type and all three scopes. Each public method
returns a ``Result``; store exceptions are caught and mapped, and the only
exception raised is ``RepositoryConfigurationError`` from the constructor.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as SchemaValidationError

from ..domain.enums import ListScope, ListType
from ..domain.error_context import ErrorContext
from ..domain.error_mapper import ErrorMapper
from ..domain.exceptions import AppError, RepositoryConfigurationError
from ..domain.key_paths import KeyPath, scope_path_builders
from ..domain.models import DocumentSnapshot, ListConfig, ListItem, ScopedList
from ..domain.result import Err, Ok, Result
from ..domain.sanitization import remove_undefined_values, sanitize_string
from ..domain.timestamps import convert_all_timestamps, encode_all_timestamps
from ..domain.validation import validate_with_schema
from ..ports.clock import ClockPort
from ..ports.document_store import DocumentStorePort, Subscription
from ..ports.list_repository import ListRepositoryPort, ListUpdateCallback
from ..ports.logger import LoggerPort
from .config import LogContext
from .simple_logger import SimpleLogger
from .system_clock import SystemClock

ItemT = TypeVar("ItemT", bound=ListItem)

MASTER_MODIFIER = "master"


@dataclass(frozen=True)
class ListRepositoryConfig(Generic[ItemT]):
    """Everything that distinguishes one list repository from another.

    Attributes:
        list_type: Discriminator stamped on default lists
        item_schema: Pydantic model of one item
        master_path: Builder for the template document, if the type has one
        user_path: Builder from a user id, if the type has a user scope
        project_path: Builder from a project id, if the type has a project scope
        service_name: Component name used in error contexts and logs
    """

    list_type: ListType
    item_schema: type[ItemT]
    master_path: Callable[[], KeyPath] | None = None
    user_path: Callable[[str], KeyPath] | None = None
    project_path: Callable[[str], KeyPath] | None = None
    service_name: str = "ListRepository"

    def __post_init__(self) -> None:
        if not isinstance(self.list_type, ListType):
            raise RepositoryConfigurationError(
                f"list_type must be a ListType, got {self.list_type!r}"
            )
        if not (isinstance(self.item_schema, type) and issubclass(self.item_schema, ListItem)):
            raise RepositoryConfigurationError(
                f"item_schema must be a ListItem subclass, got {self.item_schema!r}",
                details={"list_type": self.list_type.value},
            )
        builders = (self.master_path, self.user_path, self.project_path)
        if all(builder is None for builder in builders):
            raise RepositoryConfigurationError(
                "At least one scope path builder is required",
                details={"list_type": self.list_type.value},
            )
        for builder in builders:
            if builder is not None and not callable(builder):
                raise RepositoryConfigurationError(
                    f"Path builders must be callable, got {builder!r}",
                    details={"list_type": self.list_type.value},
                )
        if not self.service_name:
            raise RepositoryConfigurationError("service_name must not be empty")

    @classmethod
    def for_list_type(
        cls, list_type: ListType, item_schema: type[ItemT], service_name: str | None = None
    ) -> ListRepositoryConfig[ItemT]:
        """Config using the standard key paths of ``list_type``."""
        master, user, project = scope_path_builders(list_type)
        return cls(
            list_type=list_type,
            item_schema=item_schema,
            master_path=master,
            user_path=user,
            project_path=project,
            service_name=service_name or f"{item_schema.__name__}Repository",
        )

    @property
    def list_schema(self) -> type[ScopedList[ItemT]]:
        return ScopedList[self.item_schema]  # type: ignore[name-defined]


class DocumentListRepository(ListRepositoryPort[ItemT]):
    """Scoped list CRUD over any document store."""

    def __init__(
        self,
        store: DocumentStorePort,
        config: ListRepositoryConfig[ItemT],
        logger: LoggerPort | None = None,
        clock: ClockPort | None = None,
    ):
        """Initialize the repository.

        Args:
            store: Remote document store binding
            config: List type, schemas and key path builders
            logger: Optional logger port. If not provided, uses simple logger.
            clock: Optional clock for creation/update stamps

        Raises:
            RepositoryConfigurationError: If ``store`` or ``config`` is unusable
        """
        if not isinstance(config, ListRepositoryConfig):
            raise RepositoryConfigurationError(f"Invalid repository config: {config!r}")
        if store is None:
            raise RepositoryConfigurationError("A document store is required")
        self._store = store
        self._config = config
        self._schema = config.list_schema
        self._logger = logger or SimpleLogger("eyedoo_sync.list_repository")
        self._clock = clock or SystemClock()

    @property
    def config(self) -> ListRepositoryConfig[ItemT]:
        return self._config

    # Internals

    def _context(
        self, method: str, scope: ListScope, owner_id: str | None, **metadata: Any
    ) -> ErrorContext:
        return ErrorContext.from_repository(
            self._config.service_name,
            method,
            user_id=owner_id if scope is ListScope.USER else None,
            project_id=owner_id if scope is ListScope.PROJECT else None,
            metadata={"scope": scope.value, **metadata},
        )

    def _log_failure(self, error: AppError, ctx: ErrorContext) -> None:
        log_ctx = LogContext(
            operation=ctx.method,
            component=ctx.component,
            user_id=ctx.user_id,
            project_id=ctx.project_id,
        ).with_error(error)
        self._logger.error(f"{ctx}: {error.message}", **log_ctx.to_dict())

    def _fail(self, error: AppError, ctx: ErrorContext) -> Err[AppError]:
        self._log_failure(error, ctx)
        return Err(error)

    def _store_failure(self, e: Exception, ctx: ErrorContext) -> Err[AppError]:
        return self._fail(ErrorMapper.from_remote_store(e, str(ctx)), ctx)

    def _resolve_path(
        self, scope: ListScope, owner_id: str | None, ctx: ErrorContext
    ) -> Result[KeyPath, AppError]:
        builder: Callable[..., KeyPath] | None = {
            ListScope.MASTER: self._config.master_path,
            ListScope.USER: self._config.user_path,
            ListScope.PROJECT: self._config.project_path,
        }[scope]
        if builder is None:
            return self._fail(
                ErrorMapper.validation_failed(
                    f"{self._config.list_type.value} lists have no {scope.value} scope",
                    str(ctx),
                    "This list is not available here.",
                ),
                ctx,
            )
        if scope is ListScope.MASTER:
            return Ok(builder())
        if not owner_id:
            return self._fail(
                ErrorMapper.validation_failed(
                    f"An owner id is required for {scope.value} lists", str(ctx)
                ),
                ctx,
            )
        try:
            return Ok(builder(owner_id))
        except (ValueError, SchemaValidationError) as e:
            return self._fail(
                ErrorMapper.validation_failed(f"Invalid owner id '{owner_id}': {e}", str(ctx)), ctx
            )

    @staticmethod
    def _modifier(scope: ListScope, owner_id: str | None) -> str:
        return owner_id if scope is not ListScope.MASTER and owner_id else MASTER_MODIFIER

    def _sanitize_item(self, item: ItemT) -> ItemT:
        return item.model_copy(
            update={
                "item_name": sanitize_string(item.item_name) or "",
                "item_description": sanitize_string(item.item_description) or "",
            }
        )

    def _sanitize_list(
        self, data: ScopedList[ItemT], last_modified_by: str | None
    ) -> ScopedList[ItemT]:
        """Clean item strings and recompute the denormalized counts."""
        categories = [category for category in data.categories if category is not None]
        items = [self._sanitize_item(item) for item in data.items if item is not None]
        used_category_ids = {item.category_id for item in items}
        config = data.config.model_copy(
            update={
                "total_categories": sum(1 for c in categories if c.id in used_category_ids),
                "total_items": len(items),
                "last_modified_by": last_modified_by or data.config.last_modified_by,
            }
        )
        return data.model_copy(update={"config": config, "categories": categories, "items": items})

    def _default_list(self) -> ScopedList[ItemT]:
        now = self._clock.now()
        return self._schema(
            config=ListConfig(
                type=self._config.list_type,
                source=ListScope.MASTER.source,
                default_values=True,
                created_by=MASTER_MODIFIER,
                last_modified_by=MASTER_MODIFIER,
                created_at=now,
            ),
        )

    def _to_document(self, data: ScopedList[ItemT]) -> dict[str, Any]:
        """Stamp times and encode for the store."""
        now = self._clock.now()
        stamped = data.model_copy(
            update={
                "config": data.config.model_copy(
                    update={"created_at": data.config.created_at or now, "updated_at": now}
                )
            }
        )
        document = encode_all_timestamps(stamped.to_document())
        return remove_undefined_values(document, recursive=True)

    def _parse_snapshot(
        self, snapshot: DocumentSnapshot, ctx: ErrorContext, last_modified_by: str | None
    ) -> Result[ScopedList[ItemT] | None, AppError]:
        """Defensively parse a stored list; an absent document is ``Ok(None)``."""
        if not snapshot.exists:
            return Ok(None)
        data = convert_all_timestamps(snapshot.data)
        validation = validate_with_schema(self._schema, data, str(ctx))
        if isinstance(validation, Err):
            self._logger.warning(
                f"Stored list at {snapshot.key_path} failed validation",
                key_path=snapshot.key_path,
                field_errors=validation.error.field_errors,
            )
            return self._fail(ErrorMapper.data_integrity(validation.error, str(ctx)), ctx)
        return Ok(self._sanitize_list(validation.value, last_modified_by))

    async def _load_for_update(
        self, scope: ListScope, owner_id: str | None, ctx: ErrorContext
    ) -> Result[tuple[ScopedList[ItemT], bool], AppError]:
        """Current list and whether a document is actually stored for it."""
        path = self._resolve_path(scope, owner_id, ctx)
        if isinstance(path, Err):
            return path
        try:
            snapshot = await self._store.read(path.value)
        except Exception as e:
            return self._store_failure(e, ctx)

        parsed = self._parse_snapshot(snapshot, ctx, self._modifier(scope, owner_id))
        if isinstance(parsed, Err):
            return parsed
        if parsed.value is not None:
            return Ok((parsed.value, True))
        if scope is ListScope.MASTER:
            return Ok((self._default_list(), False))
        return self._fail(ErrorMapper.list_not_found(str(ctx)), ctx)

    async def _load(
        self, scope: ListScope, owner_id: str | None, ctx: ErrorContext
    ) -> Result[ScopedList[ItemT], AppError]:
        loaded = await self._load_for_update(scope, owner_id, ctx)
        if isinstance(loaded, Err):
            return loaded
        return Ok(loaded.value[0])

    async def _write(
        self, path: KeyPath, document: dict[str, Any], merge: bool, ctx: ErrorContext
    ) -> Result[None, AppError]:
        try:
            await self._store.write(path, document, merge=merge)
        except Exception as e:
            return self._store_failure(e, ctx)
        return Ok(None)

    def _coerce_list(
        self, data: ScopedList[Any] | dict[str, Any], ctx: ErrorContext
    ) -> Result[ScopedList[ItemT], AppError]:
        if isinstance(data, self._schema):
            return Ok(data)
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        validation = validate_with_schema(self._schema, data, str(ctx))
        if isinstance(validation, Err):
            return self._fail(validation.error, ctx)
        return validation

    def _field_names(self, patch: dict[str, Any]) -> dict[str, Any]:
        """Re-key a patch from camelCase aliases to field names."""
        by_alias = {
            field.alias: name
            for name, field in self._config.item_schema.model_fields.items()
            if field.alias
        }
        return {by_alias.get(key, key): value for key, value in patch.items()}

    def _coerce_item(
        self, item: ItemT | dict[str, Any], ctx: ErrorContext
    ) -> Result[ItemT, AppError]:
        if isinstance(item, self._config.item_schema):
            return Ok(item)
        if isinstance(item, BaseModel):
            item = item.model_dump(by_alias=True)
        validation = validate_with_schema(self._config.item_schema, item, str(ctx))
        if isinstance(validation, Err):
            return self._fail(validation.error, ctx)
        return validation

    async def _write_items(
        self,
        scope: ListScope,
        owner_id: str | None,
        current: ScopedList[ItemT],
        items: list[ItemT],
        ctx: ErrorContext,
        stored: bool = True,
    ) -> Result[None, AppError]:
        """Single merge write of the items array plus recomputed counts.

        When nothing is stored yet (the master default), the whole list is
        written instead so the new document is complete.
        """
        path = self._resolve_path(scope, owner_id, ctx)
        if isinstance(path, Err):
            return path
        updated = self._sanitize_list(
            current.model_copy(update={"items": items}), self._modifier(scope, owner_id)
        )
        document = self._to_document(updated)
        if not stored:
            return await self._write(path.value, document, False, ctx)
        patch = {
            "config": {
                key: document["config"][key]
                for key in ("totalCategories", "totalItems", "lastModifiedBy", "updatedAt")
            },
            "items": document["items"],
        }
        return await self._write(path.value, patch, True, ctx)

    # Generic scoped operations

    async def get_list(
        self, scope: ListScope, owner_id: str | None = None
    ) -> Result[ScopedList[ItemT], AppError]:
        ctx = self._context("get_list", scope, owner_id)
        return await self._load(scope, owner_id, ctx)

    async def save_list(
        self,
        scope: ListScope,
        owner_id: str | None,
        data: ScopedList[ItemT] | dict[str, Any],
    ) -> Result[None, AppError]:
        ctx = self._context("save_list", scope, owner_id)
        path = self._resolve_path(scope, owner_id, ctx)
        if isinstance(path, Err):
            return path
        coerced = self._coerce_list(data, ctx)
        if isinstance(coerced, Err):
            return coerced
        sanitized = self._sanitize_list(coerced.value, self._modifier(scope, owner_id))
        return await self._write(path.value, self._to_document(sanitized), True, ctx)

    async def create_or_reset_list(
        self,
        scope: ListScope,
        owner_id: str,
        source: ScopedList[ItemT] | dict[str, Any],
    ) -> Result[None, AppError]:
        ctx = self._context("create_or_reset_list", scope, owner_id)
        if scope is ListScope.MASTER:
            return self._fail(
                ErrorMapper.validation_failed(
                    "The master list cannot be reset from a template", str(ctx)
                ),
                ctx,
            )
        path = self._resolve_path(scope, owner_id, ctx)
        if isinstance(path, Err):
            return path
        coerced = self._coerce_list(source, ctx)
        if isinstance(coerced, Err):
            return coerced
        now = self._clock.now()
        personalized = coerced.value.model_copy(
            update={
                "config": coerced.value.config.model_copy(
                    update={"source": scope.source, "created_at": now, "updated_at": now}
                )
            }
        )
        sanitized = self._sanitize_list(personalized, owner_id)
        return await self._write(path.value, self._to_document(sanitized), False, ctx)

    async def delete_list(self, scope: ListScope, owner_id: str) -> Result[None, AppError]:
        ctx = self._context("delete_list", scope, owner_id)
        path = self._resolve_path(scope, owner_id, ctx)
        if isinstance(path, Err):
            return path
        try:
            await self._store.delete(path.value)
        except Exception as e:
            return self._store_failure(e, ctx)
        return Ok(None)

    async def add_item(
        self, scope: ListScope, owner_id: str | None, item: ItemT | dict[str, Any]
    ) -> Result[ItemT, AppError]:
        ctx = self._context("add_item", scope, owner_id)
        coerced = self._coerce_item(item, ctx)
        if isinstance(coerced, Err):
            return coerced
        sanitized_item = self._sanitize_item(coerced.value)

        current = await self._load(scope, owner_id, ctx)
        if isinstance(current, Err):
            return current

        if current.value.find_item(sanitized_item.id) is not None:
            return self._fail(
                ErrorMapper.validation_failed(
                    f"Item with id {sanitized_item.id} already exists",
                    str(ctx),
                    "This item already exists in the list",
                ),
                ctx,
            )

        updated = current.value.model_copy(
            update={"items": [*current.value.items, sanitized_item]}
        )
        saved = await self.save_list(scope, owner_id, updated)
        if isinstance(saved, Err):
            return saved
        return Ok(sanitized_item)

    async def delete_item(
        self, scope: ListScope, owner_id: str | None, item_id: str
    ) -> Result[None, AppError]:
        ctx = self._context("delete_item", scope, owner_id, item_id=item_id)
        loaded = await self._load_for_update(scope, owner_id, ctx)
        if isinstance(loaded, Err):
            return loaded
        current, stored = loaded.value
        remaining = [item for item in current.items if item.id != item_id]
        return await self._write_items(scope, owner_id, current, remaining, ctx, stored)

    async def batch_update_items(
        self, scope: ListScope, owner_id: str | None, updates: list[dict[str, Any]]
    ) -> Result[None, AppError]:
        ctx = self._context("batch_update_items", scope, owner_id, count=len(updates))
        loaded = await self._load_for_update(scope, owner_id, ctx)
        if isinstance(loaded, Err):
            return loaded
        current, stored = loaded.value

        working: dict[str, ItemT] = {item.id: item for item in current.items}
        for patch in updates:
            item_id = patch.get("id")
            existing = working.get(item_id) if item_id is not None else None
            if existing is None:
                continue
            merged = {**existing.model_dump(), **self._field_names(patch)}
            validation = validate_with_schema(self._config.item_schema, merged, str(ctx))
            if isinstance(validation, Err):
                return self._fail(validation.error, ctx)
            working[item_id] = validation.value

        return await self._write_items(
            scope, owner_id, current, list(working.values()), ctx, stored
        )

    async def batch_delete_items(
        self, scope: ListScope, owner_id: str | None, item_ids: list[str]
    ) -> Result[None, AppError]:
        ctx = self._context("batch_delete_items", scope, owner_id, count=len(item_ids))
        loaded = await self._load_for_update(scope, owner_id, ctx)
        if isinstance(loaded, Err):
            return loaded
        current, stored = loaded.value
        doomed = set(item_ids)
        remaining = [item for item in current.items if item.id not in doomed]
        return await self._write_items(scope, owner_id, current, remaining, ctx, stored)

    async def subscribe_to_list(
        self,
        scope: ListScope,
        owner_id: str | None,
        on_update: ListUpdateCallback,
    ) -> Result[Subscription, AppError]:
        ctx = self._context("subscribe_to_list", scope, owner_id)
        path = self._resolve_path(scope, owner_id, ctx)
        if isinstance(path, Err):
            return path
        modifier = self._modifier(scope, owner_id)

        def handle_snapshot(snapshot: DocumentSnapshot) -> None:
            on_update(self._parse_snapshot(snapshot, ctx, modifier))

        def handle_error(error: Exception) -> None:
            on_update(self._store_failure(error, ctx))

        try:
            subscription = await self._store.subscribe(path.value, handle_snapshot, handle_error)
        except Exception as e:
            return self._store_failure(e, ctx)
        return Ok(subscription)

    # Named per-scope operations

    async def get_master(self) -> Result[ScopedList[ItemT], AppError]:
        return await self.get_list(ListScope.MASTER)

    async def upsert_master(self, data: ScopedList[ItemT]) -> Result[None, AppError]:
        return await self.save_list(ListScope.MASTER, None, data)

    async def add_master_item(self, item: ItemT) -> Result[ItemT, AppError]:
        return await self.add_item(ListScope.MASTER, None, item)

    async def delete_master_item(self, item_id: str) -> Result[None, AppError]:
        return await self.delete_item(ListScope.MASTER, None, item_id)

    async def batch_update_master_items(
        self, updates: list[dict[str, Any]]
    ) -> Result[None, AppError]:
        return await self.batch_update_items(ListScope.MASTER, None, updates)

    async def batch_delete_master_items(self, item_ids: list[str]) -> Result[None, AppError]:
        return await self.batch_delete_items(ListScope.MASTER, None, item_ids)

    async def subscribe_to_master_list(
        self, on_update: ListUpdateCallback
    ) -> Result[Subscription, AppError]:
        return await self.subscribe_to_list(ListScope.MASTER, None, on_update)

    async def create_or_reset_user_list(
        self, user_id: str, source: ScopedList[ItemT]
    ) -> Result[None, AppError]:
        return await self.create_or_reset_list(ListScope.USER, user_id, source)

    async def get_user_list(self, user_id: str) -> Result[ScopedList[ItemT], AppError]:
        return await self.get_list(ListScope.USER, user_id)

    async def save_user_list(self, user_id: str, data: ScopedList[ItemT]) -> Result[None, AppError]:
        return await self.save_list(ListScope.USER, user_id, data)

    async def delete_user_list(self, user_id: str) -> Result[None, AppError]:
        return await self.delete_list(ListScope.USER, user_id)

    async def add_user_item(self, user_id: str, item: ItemT) -> Result[ItemT, AppError]:
        return await self.add_item(ListScope.USER, user_id, item)

    async def delete_user_item(self, user_id: str, item_id: str) -> Result[None, AppError]:
        return await self.delete_item(ListScope.USER, user_id, item_id)

    async def batch_update_user_items(
        self, user_id: str, updates: list[dict[str, Any]]
    ) -> Result[None, AppError]:
        return await self.batch_update_items(ListScope.USER, user_id, updates)

    async def batch_delete_user_items(
        self, user_id: str, item_ids: list[str]
    ) -> Result[None, AppError]:
        return await self.batch_delete_items(ListScope.USER, user_id, item_ids)

    async def subscribe_to_user_list(
        self, user_id: str, on_update: ListUpdateCallback
    ) -> Result[Subscription, AppError]:
        return await self.subscribe_to_list(ListScope.USER, user_id, on_update)

    async def create_or_reset_project_list(
        self, project_id: str, source: ScopedList[ItemT]
    ) -> Result[None, AppError]:
        return await self.create_or_reset_list(ListScope.PROJECT, project_id, source)

    async def get_project_list(self, project_id: str) -> Result[ScopedList[ItemT], AppError]:
        return await self.get_list(ListScope.PROJECT, project_id)

    async def save_project_list(
        self, project_id: str, data: ScopedList[ItemT]
    ) -> Result[None, AppError]:
        return await self.save_list(ListScope.PROJECT, project_id, data)

    async def delete_project_list(self, project_id: str) -> Result[None, AppError]:
        return await self.delete_list(ListScope.PROJECT, project_id)

    async def add_project_item(self, project_id: str, item: ItemT) -> Result[ItemT, AppError]:
        return await self.add_item(ListScope.PROJECT, project_id, item)

    async def delete_project_item(self, project_id: str, item_id: str) -> Result[None, AppError]:
        return await self.delete_item(ListScope.PROJECT, project_id, item_id)

    async def batch_update_project_items(
        self, project_id: str, updates: list[dict[str, Any]]
    ) -> Result[None, AppError]:
        return await self.batch_update_items(ListScope.PROJECT, project_id, updates)

    async def batch_delete_project_items(
        self, project_id: str, item_ids: list[str]
    ) -> Result[None, AppError]:
        return await self.batch_delete_items(ListScope.PROJECT, project_id, item_ids)

    async def subscribe_to_project_list(
        self, project_id: str, on_update: ListUpdateCallback
    ) -> Result[Subscription, AppError]:
        return await self.subscribe_to_list(ListScope.PROJECT, project_id, on_update)


__all__ = ["DocumentListRepository", "ListRepositoryConfig"]
