"""Business card repository port - single-entity document on the user record."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..domain.exceptions import AppError
from ..domain.models import BusinessCard, BusinessCardInput
from ..domain.result import Result


class BusinessCardRepositoryPort(ABC):
    """Abstract interface for a user's business card."""

    @abstractmethod
    async def has_card(self, user_id: str) -> Result[bool, AppError]:
        """Whether the user document carries a business card."""
        ...

    @abstractmethod
    async def get_card(self, user_id: str) -> Result[BusinessCard | None, AppError]:
        """Fetch the card; ``Ok(None)`` when the user has none."""
        ...

    @abstractmethod
    async def create_card(
        self, user_id: str, payload: BusinessCardInput | dict[str, Any]
    ) -> Result[BusinessCard, AppError]:
        """Validate, sanitize and store a new card."""
        ...

    @abstractmethod
    async def update_card(
        self, user_id: str, updates: dict[str, Any]
    ) -> Result[BusinessCard, AppError]:
        """Apply a partial update; only supplied fields are written."""
        ...

    @abstractmethod
    async def delete_card(self, user_id: str) -> Result[None, AppError]:
        """Remove the card from the user document."""
        ...
