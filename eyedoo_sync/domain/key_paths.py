"""Hierarchical document addresses and the builders for each list scope."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ListScope, ListType


class KeyPath(BaseModel):
    """Value object representing the address of one document.

    Segments alternate collection and document names, e.g.
    ``("users", "u1", "lists", "taskList")``.
    """

    model_config = ConfigDict(frozen=True, strict=True)

    segments: tuple[str, ...] = Field(..., min_length=1, description="Ordered path segments")

    @classmethod
    def of(cls, *segments: str) -> KeyPath:
        return cls(segments=tuple(segments))

    @field_validator("segments")
    @classmethod
    def validate_segments(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        for segment in v:
            if not segment or not segment.strip():
                raise ValueError(f"Key path segments must be non-empty: {v!r}")
            if "/" in segment:
                raise ValueError(f"Key path segment '{segment}' must not contain '/'")
        return v

    def child(self, *segments: str) -> KeyPath:
        return KeyPath(segments=self.segments + tuple(segments))

    def __str__(self) -> str:
        return "/".join(self.segments)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, KeyPath):
            return self.segments == other.segments
        if isinstance(other, str):
            return str(self) == other
        return False

    def __hash__(self) -> int:
        return hash(self.segments)


MASTER_COLLECTION = "masterData"
USERS_COLLECTION = "users"
PROJECTS_COLLECTION = "projects"
LISTS_COLLECTION = "lists"

# Document name of each list type under masterData/
MASTER_LIST_DOCUMENTS: dict[ListType, str] = {
    ListType.KIT: "kit",
    ListType.TASKS: "task",
    ListType.GROUP_SHOTS: "groupShots",
    ListType.COUPLE_SHOTS: "coupleShots",
}

# Document name of each list type under users/{id}/lists/
USER_LIST_DOCUMENTS: dict[ListType, str] = {
    ListType.KIT: "kitList",
    ListType.TASKS: "taskList",
    ListType.GROUP_SHOTS: "groupShots",
    ListType.COUPLE_SHOTS: "coupleShots",
    ListType.NOTES: "notes",
    ListType.VENDORS: "vendors",
    ListType.TAGS: "tags",
}

# Document name of each list type under projects/{id}/lists/
PROJECT_LIST_DOCUMENTS: dict[ListType, str] = {
    **USER_LIST_DOCUMENTS,
    ListType.PHOTO_REQUEST: "photoRequests",
    ListType.KEY_PEOPLE: "keyPeople",
}


def _document_name(table: dict[ListType, str], list_type: ListType, scope: ListScope) -> str:
    try:
        return table[list_type]
    except KeyError:
        raise ValueError(f"List type '{list_type.value}' has no {scope.value} scope") from None


def master_list_path(list_type: ListType) -> KeyPath:
    return KeyPath.of(
        MASTER_COLLECTION, _document_name(MASTER_LIST_DOCUMENTS, list_type, ListScope.MASTER)
    )


def user_list_path(list_type: ListType, user_id: str) -> KeyPath:
    return KeyPath.of(
        USERS_COLLECTION,
        user_id,
        LISTS_COLLECTION,
        _document_name(USER_LIST_DOCUMENTS, list_type, ListScope.USER),
    )


def project_list_path(list_type: ListType, project_id: str) -> KeyPath:
    return KeyPath.of(
        PROJECTS_COLLECTION,
        project_id,
        LISTS_COLLECTION,
        _document_name(PROJECT_LIST_DOCUMENTS, list_type, ListScope.PROJECT),
    )


def user_document_path(user_id: str) -> KeyPath:
    return KeyPath.of(USERS_COLLECTION, user_id)


def project_document_path(project_id: str) -> KeyPath:
    return KeyPath.of(PROJECTS_COLLECTION, project_id)


def scope_path_builders(
    list_type: ListType,
) -> tuple[
    Callable[[], KeyPath] | None,
    Callable[[str], KeyPath] | None,
    Callable[[str], KeyPath] | None,
]:
    """Master, user and project builders for ``list_type``.

    Scopes the list type does not exist in are returned as ``None``.
    """
    master = (lambda: master_list_path(list_type)) if list_type in MASTER_LIST_DOCUMENTS else None
    user = (
        (lambda user_id: user_list_path(list_type, user_id))
        if list_type in USER_LIST_DOCUMENTS
        else None
    )
    project = (
        (lambda project_id: project_list_path(list_type, project_id))
        if list_type in PROJECT_LIST_DOCUMENTS
        else None
    )
    return master, user, project
