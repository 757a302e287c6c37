"""Domain models for list-backed collections and single-entity documents.

Persisted shapes use camelCase keys on the wire (``alias_generator``) and
snake_case attributes in Python; either spelling is accepted on input.
Unknown keys in stored documents are ignored so older or hand-edited
documents still parse.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .enums import ListSource, ListType, OperationKind, OptimisticStatus
from .exceptions import AppError

NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 100
NOTES_MAX_LENGTH = 500

DEFAULT_LIST_VERSION = "1.0"

PERSISTED_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="ignore",
    str_strip_whitespace=True,
    validate_assignment=True,
)


class CreatedBy(str, Enum):
    CLIENT = "client"
    PHOTOGRAPHER = "photographer"
    SYSTEM = "system"


class VendorType(str, Enum):
    PHOTOGRAPHER = "photographer"
    VIDEOGRAPHER = "videographer"
    VENUE = "venue"
    CATERER = "caterer"
    FLORIST = "florist"
    MUSIC = "music"
    TRANSPORTATION = "transportation"
    HAIR_MAKEUP = "hairMakeup"
    DRESS = "dress"
    SUIT = "suit"
    OTHER = "other"


class TagColor(str, Enum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"
    PINK = "pink"
    GRAY = "gray"


class ListConfig(BaseModel):
    """Identity, ownership and denormalized counts of a list.

    ``total_categories`` and ``total_items`` are recomputed by the repository
    on every write and must never be trusted from callers.
    """

    model_config = PERSISTED_MODEL_CONFIG

    id: str = Field(default="", description="Document identifier")
    type: ListType = Field(..., description="Collection discriminator")
    source: ListSource = Field(default=ListSource.MASTER_LIST, description="Owning scope")
    default_values: bool = Field(default=False, description="Seeded from defaults")
    version: str = Field(default=DEFAULT_LIST_VERSION)
    created_by: str | None = Field(default=None)
    last_modified_by: str | None = Field(default=None)
    total_categories: int = Field(default=0, ge=0)
    total_items: int = Field(default=0, ge=0)
    created_at: datetime | None = Field(default=None)
    updated_at: datetime | None = Field(default=None)


class ListCategory(BaseModel):
    model_config = PERSISTED_MODEL_CONFIG

    id: str = Field(..., min_length=1)
    cat_name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    cat_description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    icon_name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    is_custom: bool = False
    is_checked: bool = False


class ListItem(BaseModel):
    """Fields shared by every list item."""

    model_config = PERSISTED_MODEL_CONFIG

    id: str = Field(..., min_length=1, description="Item identifier, unique within a list")
    category_id: str | None = Field(default=None, description="Owning category")
    item_name: str = Field(..., min_length=1, max_length=NAME_MAX_LENGTH)
    item_description: str = Field(default="", max_length=DESCRIPTION_MAX_LENGTH)
    is_custom: bool = False
    is_checked: bool = False
    is_disabled: bool = False


class TaskItem(ListItem):
    due_date: datetime | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)


class KitItem(ListItem):
    quantity: int = Field(default=1, ge=1)
    is_essential: bool = False


class ShotItem(ListItem):
    """Entry of a group-shot or couple-shot list."""

    duration_minutes: int = Field(default=5, ge=0)
    people: list[str] = Field(default_factory=list)


class KeyPersonItem(ListItem):
    role: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    contact_phone: str | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)


class PhotoRequestItem(ListItem):
    requested_by: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    reference_url: str | None = None


class VendorItem(ListItem):
    business_name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    vendor_type: VendorType = VendorType.OTHER
    contact_email: str | None = None
    contact_phone: str | None = None
    website: str | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)
    is_preferred: bool = False


class TagItem(ListItem):
    color: TagColor = TagColor.GRAY


class NoteItem(ListItem):
    content: str = Field(default="", max_length=NOTES_MAX_LENGTH)
    is_pinned: bool = False


class PendingUpdate(BaseModel):
    """Change queued against an item while offline."""

    model_config = PERSISTED_MODEL_CONFIG

    id: str = Field(..., min_length=1)
    item_id: str = Field(..., min_length=1)
    operation: OperationKind
    changes: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None


ItemT = TypeVar("ItemT", bound=ListItem)
ValueT = TypeVar("ValueT")


class ScopedList(BaseModel, Generic[ItemT]):
    """A config/categories/items aggregate owned by exactly one scope."""

    model_config = PERSISTED_MODEL_CONFIG

    config: ListConfig
    categories: list[ListCategory] = Field(default_factory=list)
    items: list[ItemT] = Field(default_factory=list)
    pending_updates: list[PendingUpdate] = Field(default_factory=list)

    @field_validator("categories", "items", "pending_updates", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Older documents may store ``null`` for empty arrays."""
        return [] if v is None else v

    def find_item(self, item_id: str) -> ItemT | None:
        return next((item for item in self.items if item.id == item_id), None)

    def to_document(self) -> dict[str, Any]:
        """camelCase mapping as written to the store."""
        return self.model_dump(by_alias=True, mode="python")


TaskList = ScopedList[TaskItem]
KitList = ScopedList[KitItem]
ShotList = ScopedList[ShotItem]
KeyPeopleList = ScopedList[KeyPersonItem]
PhotoRequestList = ScopedList[PhotoRequestItem]
VendorList = ScopedList[VendorItem]
TagList = ScopedList[TagItem]
NoteList = ScopedList[NoteItem]


class BusinessCardInput(BaseModel):
    """User-editable business card fields."""

    model_config = PERSISTED_MODEL_CONFIG

    first_name: str = Field(default="", max_length=NAME_MAX_LENGTH)
    last_name: str = Field(default="", max_length=NAME_MAX_LENGTH)
    display_name: str = Field(default="", max_length=NAME_MAX_LENGTH)
    company_name: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    job_title: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    street: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    city: str | None = Field(default=None, max_length=NAME_MAX_LENGTH)
    postal_code: str | None = Field(default=None, max_length=20)
    contact_email: str | None = None
    contact_phone: str | None = None
    website: str | None = None
    instagram: str | None = None
    facebook: str | None = None
    twitter: str | None = None
    linkedin: str | None = None
    youtube: str | None = None
    tiktok: str | None = None
    pinterest: str | None = None
    social_media_other: str | None = None
    notes: str | None = Field(default=None, max_length=NOTES_MAX_LENGTH)


class BusinessCard(BusinessCardInput):
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class OptimisticUpdate(Generic[ValueT]):
    """Envelope for one optimistic mutation; lives for a single call.

    Not persisted. ``rollback_value`` is what gets republished on failure.
    """

    operation_kind: OperationKind
    applied_value: ValueT
    rollback_value: ValueT
    status: OptimisticStatus = OptimisticStatus.PENDING
    error: AppError | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def resolve(self, error: AppError | None = None) -> None:
        """Mark the mutation confirmed, or failed with ``error``."""
        self.error = error
        self.status = OptimisticStatus.FAILED if error is not None else OptimisticStatus.SUCCESS


class DocumentSnapshot(BaseModel):
    """Raw document as read from the store; ``data`` is ``None`` when absent."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key_path: str = Field(..., description="Slash-joined key path")
    data: dict[str, Any] | None = Field(default=None, description="Raw stored mapping")
    revision: int | None = Field(default=None, ge=0, description="Store revision, if any")

    @property
    def exists(self) -> bool:
        return self.data is not None
