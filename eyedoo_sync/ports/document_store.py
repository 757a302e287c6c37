"""Document store port - remote key-path read/write/subscribe service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from ..domain.key_paths import KeyPath
from ..domain.models import DocumentSnapshot

SnapshotCallback = Callable[[DocumentSnapshot], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(ABC):
    """Handle for a push-based listener.

    Listeners are never released implicitly; the owner must call
    :meth:`unsubscribe` on teardown.
    """

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Whether snapshots are still being delivered."""
        ...

    @abstractmethod
    async def unsubscribe(self) -> None:
        """Stop delivery. Calling it more than once is a no-op."""
        ...


class DocumentStorePort(ABC):
    """Abstract interface for the remote document store.

    Implementations raise ``DocumentStoreError`` for store failures; callers
    are expected to map those into ``AppError`` values.
    """

    @abstractmethod
    async def read(self, key_path: KeyPath) -> DocumentSnapshot:
        """Read a document.

        Args:
            key_path: Address of the document

        Returns:
            DocumentSnapshot: ``data`` is ``None`` if the document does not exist
        """
        ...

    @abstractmethod
    async def write(self, key_path: KeyPath, data: dict[str, Any], merge: bool = False) -> None:
        """Write a document.

        Args:
            key_path: Address of the document
            data: Mapping to store
            merge: Deep-merge into the existing document instead of replacing it
        """
        ...

    @abstractmethod
    async def delete(self, key_path: KeyPath) -> None:
        """Delete a document. Deleting an absent document is not an error."""
        ...

    @abstractmethod
    async def subscribe(
        self,
        key_path: KeyPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        """Listen for changes to one document.

        The current state is delivered first, then one snapshot per change.

        Args:
            key_path: Address of the document
            on_snapshot: Called with every snapshot, including deletions
            on_error: Called when the listener fails

        Returns:
            Subscription: Handle that must be released with ``unsubscribe()``
        """
        ...
