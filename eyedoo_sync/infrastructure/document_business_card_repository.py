"""Business card repository - a single entity stored on the user document."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from ..domain.error_context import ErrorContext
from ..domain.error_mapper import ErrorMapper
from ..domain.exceptions import AppError
from ..domain.key_paths import KeyPath, user_document_path
from ..domain.models import BusinessCard, BusinessCardInput
from ..domain.result import Err, Ok, Result
from ..domain.sanitization import (
    UNSET,
    remove_undefined_values,
    sanitize_email,
    sanitize_phone,
    sanitize_string,
    sanitize_string_or_empty,
    sanitize_url,
)
from ..domain.timestamps import convert_all_timestamps, encode_all_timestamps
from ..domain.validation import validate_partial_with_schema, validate_with_schema
from ..ports.business_card_repository import BusinessCardRepositoryPort
from ..ports.clock import ClockPort
from ..ports.document_store import DocumentStorePort
from ..ports.logger import LoggerPort
from .config import LogContext
from .simple_logger import SimpleLogger
from .system_clock import SystemClock

CARD_FIELD = "businessCard"
SETUP_FLAG = "customBusinessCardSetup"

REQUIRED_TEXT_FIELDS = ("first_name", "last_name", "display_name")
URL_FIELDS = (
    "website",
    "instagram",
    "facebook",
    "twitter",
    "linkedin",
    "youtube",
    "tiktok",
    "pinterest",
    "social_media_other",
)

# Sanitizer per field; anything not listed is treated as optional free text
_FIELD_SANITIZERS: dict[str, Callable[[Any], Any]] = {
    **{name: sanitize_string_or_empty for name in REQUIRED_TEXT_FIELDS},
    "contact_email": sanitize_email,
    "contact_phone": sanitize_phone,
    **{name: sanitize_url for name in URL_FIELDS},
}

# Fields whose invalid values are dropped from a partial update instead of cleared
_DROP_WHEN_INVALID = frozenset({"contact_email", "contact_phone", *URL_FIELDS})


def _sanitize_field(name: str, value: Any) -> Any:
    return _FIELD_SANITIZERS.get(name, sanitize_string)(value)


def sanitize_card_input(fields: dict[str, Any]) -> dict[str, Any]:
    """Sanitize a complete card; invalid contact values become ``None``."""
    return {name: _sanitize_field(name, value) for name, value in fields.items()}


def sanitize_card_update(fields: dict[str, Any]) -> dict[str, Any]:
    """Sanitize only the supplied fields.

    Invalid email, phone and URL values become ``UNSET`` so the stored value
    is left untouched.
    """
    sanitized: dict[str, Any] = {}
    for name, value in fields.items():
        cleaned = _sanitize_field(name, value)
        if cleaned is None and name in _DROP_WHEN_INVALID:
            cleaned = UNSET
        sanitized[name] = cleaned
    return sanitized


def _to_aliases(fields: dict[str, Any]) -> dict[str, Any]:
    model_fields = BusinessCard.model_fields
    return {
        (model_fields[name].alias or name) if name in model_fields else name: value
        for name, value in fields.items()
    }


class DocumentBusinessCardRepository(BusinessCardRepositoryPort):
    """Stores the card under the ``businessCard`` field of ``users/{id}``."""

    SERVICE_NAME = "BusinessCardRepository"

    def __init__(
        self,
        store: DocumentStorePort,
        logger: LoggerPort | None = None,
        clock: ClockPort | None = None,
    ):
        self._store = store
        self._logger = logger or SimpleLogger("eyedoo_sync.business_card_repository")
        self._clock = clock or SystemClock()

    def _context(self, method: str, user_id: str) -> ErrorContext:
        return ErrorContext.from_repository(self.SERVICE_NAME, method, user_id=user_id)

    def _fail(self, error: AppError, ctx: ErrorContext) -> Err[AppError]:
        log_ctx = LogContext(
            operation=ctx.method, component=ctx.component, user_id=ctx.user_id
        ).with_error(error)
        self._logger.error(f"{ctx}: {error.message}", **log_ctx.to_dict())
        return Err(error)

    def _path(self, user_id: str, ctx: ErrorContext) -> Result[KeyPath, AppError]:
        if not user_id:
            return self._fail(ErrorMapper.validation_failed("A user id is required", str(ctx)), ctx)
        try:
            return Ok(user_document_path(user_id))
        except ValueError as e:
            return self._fail(
                ErrorMapper.validation_failed(f"Invalid user id '{user_id}': {e}", str(ctx)), ctx
            )

    async def _read_user(
        self, user_id: str, ctx: ErrorContext
    ) -> Result[tuple[KeyPath, dict[str, Any]], AppError]:
        """Read the user document; a missing user is ``AUTH_USER_NOT_FOUND``."""
        path = self._path(user_id, ctx)
        if isinstance(path, Err):
            return path
        try:
            snapshot = await self._store.read(path.value)
        except Exception as e:
            return self._fail(ErrorMapper.from_remote_store(e, str(ctx)), ctx)
        if not snapshot.exists:
            return self._fail(ErrorMapper.user_not_found(str(ctx)), ctx)
        return Ok((path.value, snapshot.data))

    def _parse_card(
        self, raw: dict[str, Any], ctx: ErrorContext
    ) -> Result[BusinessCard, AppError]:
        validation = validate_with_schema(BusinessCard, convert_all_timestamps(raw), str(ctx))
        if isinstance(validation, Err):
            self._logger.warning(
                "Failed to parse business card data from store",
                component=self.SERVICE_NAME,
                operation=ctx.method,
                field_errors=validation.error.field_errors,
            )
            return self._fail(ErrorMapper.data_integrity(validation.error, str(ctx)), ctx)
        return validation

    async def _write(
        self, path: KeyPath, patch: dict[str, Any], ctx: ErrorContext
    ) -> Result[None, AppError]:
        document = encode_all_timestamps(remove_undefined_values(patch, recursive=True))
        try:
            await self._store.write(path, document, merge=True)
        except Exception as e:
            return self._fail(ErrorMapper.from_remote_store(e, str(ctx)), ctx)
        return Ok(None)

    async def has_card(self, user_id: str) -> Result[bool, AppError]:
        ctx = self._context("has_card", user_id)
        user = await self._read_user(user_id, ctx)
        if isinstance(user, Err):
            return user
        _, data = user.value
        return Ok(bool(data.get(CARD_FIELD)))

    async def get_card(self, user_id: str) -> Result[BusinessCard | None, AppError]:
        ctx = self._context("get_card", user_id)
        user = await self._read_user(user_id, ctx)
        if isinstance(user, Err):
            return user
        _, data = user.value
        raw_card = data.get(CARD_FIELD)
        if not raw_card:
            return Ok(None)
        return self._parse_card(raw_card, ctx)

    async def create_card(
        self, user_id: str, payload: BusinessCardInput | dict[str, Any]
    ) -> Result[BusinessCard, AppError]:
        ctx = self._context("create_card", user_id)
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(by_alias=True)
        validation = validate_with_schema(BusinessCardInput, payload, str(ctx))
        if isinstance(validation, Err):
            return self._fail(validation.error, ctx)

        user = await self._read_user(user_id, ctx)
        if isinstance(user, Err):
            return user
        path, _ = user.value

        now = self._clock.now()
        card = BusinessCard.model_validate(
            {
                **sanitize_card_input(validation.value.model_dump()),
                "created_at": now,
                "updated_at": now,
            }
        )
        written = await self._write(
            path,
            {
                CARD_FIELD: card.model_dump(by_alias=True),
                "updatedAt": now,
                "setup": {SETUP_FLAG: True},
            },
            ctx,
        )
        if isinstance(written, Err):
            return written
        return Ok(card)

    async def update_card(
        self, user_id: str, updates: dict[str, Any]
    ) -> Result[BusinessCard, AppError]:
        ctx = self._context("update_card", user_id)
        validation = validate_partial_with_schema(BusinessCardInput, updates, str(ctx))
        if isinstance(validation, Err):
            return self._fail(validation.error, ctx)
        sanitized = sanitize_card_update(validation.value)

        current = await self.get_card(user_id)
        if isinstance(current, Err):
            return current
        if current.value is None:
            return self._fail(ErrorMapper.entity_not_found(str(ctx), "Business card"), ctx)

        path = self._path(user_id, ctx)
        if isinstance(path, Err):
            return path

        now = self._clock.now()
        changes = remove_undefined_values({**sanitized, "updated_at": now})
        updated = current.value.model_copy(update=changes)
        written = await self._write(
            path.value, {CARD_FIELD: _to_aliases(changes), "updatedAt": now}, ctx
        )
        if isinstance(written, Err):
            return written
        return Ok(updated)

    async def delete_card(self, user_id: str) -> Result[None, AppError]:
        ctx = self._context("delete_card", user_id)
        user = await self._read_user(user_id, ctx)
        if isinstance(user, Err):
            return user
        path, _ = user.value
        return await self._write(
            path,
            {CARD_FIELD: None, "updatedAt": self._clock.now(), "setup": {SETUP_FLAG: False}},
            ctx,
        )
