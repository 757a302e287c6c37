"""In-memory implementation of the DocumentStorePort.

Process-local and synchronous underneath: listeners are notified inside
``write``/``delete`` before the call returns. Intended for tests and local
development.
"""

from __future__ import annotations

import copy
from typing import Any

from ..domain.exceptions import DocumentStoreError
from ..domain.key_paths import KeyPath
from ..domain.models import DocumentSnapshot
from ..ports.document_store import (
    DocumentStorePort,
    ErrorCallback,
    SnapshotCallback,
    Subscription,
)
from .document_merge import merge_documents


class InMemorySubscription(Subscription):
    """Listener registered on an ``InMemoryDocumentStore``."""

    def __init__(
        self,
        store: InMemoryDocumentStore,
        key_path: KeyPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None,
    ):
        self._store = store
        self.key_path = key_path
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    async def unsubscribe(self) -> None:
        if self._active:
            self._active = False
            self._store._listeners.remove(self)

    def deliver(self, snapshot: DocumentSnapshot) -> None:
        try:
            self.on_snapshot(snapshot)
        except Exception as e:
            if self.on_error is None:
                raise
            self.on_error(e)


class InMemoryDocumentStore(DocumentStorePort):
    """In-memory document store for testing."""

    def __init__(self) -> None:
        self._documents: dict[KeyPath, dict[str, Any]] = {}
        self._revisions: dict[KeyPath, int] = {}
        self._listeners: list[InMemorySubscription] = []
        self._failures: dict[str, Exception] = {}
        self.writes: list[tuple[KeyPath, dict[str, Any], bool]] = []

    def _snapshot(self, key_path: KeyPath) -> DocumentSnapshot:
        data = self._documents.get(key_path)
        return DocumentSnapshot(
            key_path=str(key_path),
            data=copy.deepcopy(data) if data is not None else None,
            revision=self._revisions.get(key_path),
        )

    def _raise_injected(self, operation: str, key_path: KeyPath) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            if isinstance(error, DocumentStoreError):
                raise error
            raise DocumentStoreError(
                str(error), key_path=str(key_path), operation=operation
            ) from error

    def _notify(self, key_path: KeyPath) -> None:
        snapshot = self._snapshot(key_path)
        for listener in list(self._listeners):
            if listener.is_active and listener.key_path == key_path:
                listener.deliver(snapshot)

    async def read(self, key_path: KeyPath) -> DocumentSnapshot:
        self._raise_injected("read", key_path)
        return self._snapshot(key_path)

    async def write(self, key_path: KeyPath, data: dict[str, Any], merge: bool = False) -> None:
        self._raise_injected("write", key_path)
        self.writes.append((key_path, copy.deepcopy(data), merge))
        if merge:
            self._documents[key_path] = merge_documents(self._documents.get(key_path), data)
        else:
            self._documents[key_path] = copy.deepcopy(data)
        self._revisions[key_path] = self._revisions.get(key_path, 0) + 1
        self._notify(key_path)

    async def delete(self, key_path: KeyPath) -> None:
        self._raise_injected("delete", key_path)
        if self._documents.pop(key_path, None) is not None:
            self._revisions[key_path] = self._revisions.get(key_path, 0) + 1
            self._notify(key_path)

    async def subscribe(
        self,
        key_path: KeyPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        self._raise_injected("subscribe", key_path)
        subscription = InMemorySubscription(self, key_path, on_snapshot, on_error)
        self._listeners.append(subscription)
        subscription.deliver(self._snapshot(key_path))
        return subscription

    # Test helpers

    def inject_failure(self, operation: str, error: Exception) -> None:
        """Make the next ``operation`` ("read", "write", "delete", "subscribe") raise."""
        self._failures[operation] = error

    def emit_error(self, key_path: KeyPath, error: Exception) -> None:
        """Report a listener failure to every subscriber of ``key_path``."""
        for listener in list(self._listeners):
            if listener.is_active and listener.key_path == key_path and listener.on_error:
                listener.on_error(error)

    def seed(self, key_path: KeyPath, data: dict[str, Any]) -> None:
        """Store a raw document without notifying listeners or recording a write."""
        self._documents[key_path] = copy.deepcopy(data)

    def get_raw(self, key_path: KeyPath) -> dict[str, Any] | None:
        data = self._documents.get(key_path)
        return copy.deepcopy(data) if data is not None else None

    def get_all(self) -> dict[str, dict[str, Any]]:
        """All stored documents keyed by slash-joined path."""
        return {str(path): copy.deepcopy(data) for path, data in self._documents.items()}

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def clear(self) -> None:
        """Clear all documents, listeners and recorded writes."""
        self._documents.clear()
        self._revisions.clear()
        self._listeners.clear()
        self._failures.clear()
        self.writes.clear()
