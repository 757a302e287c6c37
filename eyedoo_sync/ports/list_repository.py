"""List repository port - scoped CRUD over list documents."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from ..domain.enums import ListScope
from ..domain.exceptions import AppError
from ..domain.models import ListItem, ScopedList
from ..domain.result import Result
from .document_store import Subscription

ItemT = TypeVar("ItemT", bound=ListItem)

ListUpdateCallback = Callable[[Result[ScopedList[Any] | None, AppError]], None]


class ListRepositoryPort(ABC, Generic[ItemT]):
    """Abstract interface for a list repository.

    Every operation takes the target scope plus the owner id (user id for
    the user scope, project id for the project scope, ``None`` for master)
    and returns a ``Result``; per-call failures are never raised.
    """

    @abstractmethod
    async def get_list(
        self, scope: ListScope, owner_id: str | None = None
    ) -> Result[ScopedList[ItemT], AppError]:
        """Fetch and defensively parse a list.

        A missing master list yields an empty default list; a missing user or
        project list is a not-found error.
        """
        ...

    @abstractmethod
    async def save_list(
        self, scope: ListScope, owner_id: str | None, data: ScopedList[ItemT]
    ) -> Result[None, AppError]:
        """Sanitize, recompute counts and merge-write a list."""
        ...

    @abstractmethod
    async def create_or_reset_list(
        self, scope: ListScope, owner_id: str, source: ScopedList[ItemT]
    ) -> Result[None, AppError]:
        """Overwrite a user or project list from a template snapshot."""
        ...

    @abstractmethod
    async def delete_list(self, scope: ListScope, owner_id: str) -> Result[None, AppError]:
        """Delete a user or project list."""
        ...

    @abstractmethod
    async def add_item(
        self, scope: ListScope, owner_id: str | None, item: ItemT
    ) -> Result[ItemT, AppError]:
        """Append an item; duplicate ids are rejected without writing."""
        ...

    @abstractmethod
    async def delete_item(
        self, scope: ListScope, owner_id: str | None, item_id: str
    ) -> Result[None, AppError]:
        """Remove an item; an unknown id is a no-op."""
        ...

    @abstractmethod
    async def batch_update_items(
        self, scope: ListScope, owner_id: str | None, updates: list[dict[str, Any]]
    ) -> Result[None, AppError]:
        """Apply ``{"id": ..., **fields}`` patches in a single write.

        Patches whose id is not in the list are dropped.
        """
        ...

    @abstractmethod
    async def batch_delete_items(
        self, scope: ListScope, owner_id: str | None, item_ids: list[str]
    ) -> Result[None, AppError]:
        """Remove all listed ids in a single write."""
        ...

    @abstractmethod
    async def subscribe_to_list(
        self,
        scope: ListScope,
        owner_id: str | None,
        on_update: ListUpdateCallback,
    ) -> Result[Subscription, AppError]:
        """Push parsed snapshots to ``on_update``; absent documents arrive as ``Ok(None)``."""
        ...
