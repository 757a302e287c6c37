"""NATS KV document store - concrete implementation of DocumentStorePort.

Each document lives under one key of a JetStream KeyValue bucket. Merge
writes are read-modify-write with no revision check; the last writer wins.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import nats
from nats.errors import ConnectionClosedError, NoServersError
from nats.errors import TimeoutError as NATSTimeoutError
from nats.js.api import KeyValueConfig
from nats.js.errors import BucketNotFoundError, KeyNotFoundError

from ..domain.exceptions import DocumentStoreError
from ..domain.key_paths import KeyPath
from ..domain.models import DocumentSnapshot
from ..ports.document_store import (
    DocumentStorePort,
    ErrorCallback,
    SnapshotCallback,
    Subscription,
)
from ..ports.logger import LoggerPort
from .config import DocumentStoreConfig, LogContext, NATSConnectionConfig
from .document_merge import merge_documents
from .key_sanitizer import KeySanitizer
from .serialization import deserialize_document, serialize_document
from .simple_logger import SimpleLogger

if TYPE_CHECKING:
    from nats.aio.client import Client as NATSClient
    from nats.js.kv import KeyValue

_DELETE_OPERATIONS = ("DEL", "PURGE", "DELETE")


def _store_error(e: Exception, key_path: KeyPath, operation: str) -> DocumentStoreError:
    """Wrap a NATS failure, tagging transient and permission failures with a code."""
    code = None
    if isinstance(e, NATSTimeoutError | NoServersError | ConnectionClosedError | TimeoutError):
        code = "unavailable"
    elif "permission" in str(e).lower() or "authorization" in str(e).lower():
        code = "permission-denied"
    return DocumentStoreError(
        f"NATS KV {operation} failed for '{key_path}': {e}",
        key_path=str(key_path),
        operation=operation,
        code=code,
    )


class NATSSubscription(Subscription):
    """Background watch task delivering snapshots for one key."""

    def __init__(
        self,
        key_path: KeyPath,
        watcher: Any,
        task: asyncio.Task[None] | None = None,
        on_release: Callable[[NATSSubscription], None] | None = None,
    ):
        self.key_path = key_path
        self._watcher = watcher
        self._task = task
        self._on_release = on_release
        self._active = True

    def attach(self, task: asyncio.Task[None]) -> None:
        self._task = task

    @property
    def is_active(self) -> bool:
        return self._active

    async def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._on_release is not None:
            self._on_release(self)
        if self._task and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        await self._watcher.stop()


class NATSDocumentStore(DocumentStorePort):
    """NATS JetStream KeyValue implementation of the document store port."""

    def __init__(
        self,
        config: DocumentStoreConfig | None = None,
        connection_config: NATSConnectionConfig | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize the adapter.

        Args:
            config: Bucket settings. Defaults are used if not provided.
            connection_config: Connection settings used by :meth:`connect`
            logger: Optional logger port. If not provided, uses simple logger.
        """
        self._config = config or DocumentStoreConfig()
        self._connection_config = connection_config or NATSConnectionConfig()
        self._logger = logger or SimpleLogger("eyedoo_sync.nats_document_store")
        self._nc: NATSClient | None = None
        self._owns_connection = False
        self._kv: KeyValue | None = None
        self._subscriptions: list[NATSSubscription] = []

    async def connect(self, client: NATSClient | None = None) -> None:
        """Connect to NATS and open (or create) the document bucket.

        Args:
            client: Already connected NATS client to reuse
        """
        log_ctx = LogContext(operation="connect", component="NATSDocumentStore")
        try:
            self._owns_connection = client is None
            self._nc = client or await nats.connect(
                **self._connection_config.to_connection_params()
            )
            if self._connection_config.js_domain:
                js = self._nc.jetstream(domain=self._connection_config.js_domain)
            else:
                js = self._nc.jetstream()
            try:
                self._kv = await js.key_value(self._config.bucket)
            except BucketNotFoundError:
                self._kv = await js.create_key_value(
                    KeyValueConfig(
                        bucket=self._config.bucket,
                        description="Eye-Doo documents",
                        max_value_size=self._config.max_value_size,
                        history=self._config.history_size,
                    )
                )
                self._logger.info(
                    f"Created KV bucket: {self._config.bucket}", **log_ctx.to_dict()
                )
        except Exception as e:
            self._logger.exception(
                f"Failed to open KV bucket '{self._config.bucket}'",
                exc_info=e,
                **log_ctx.with_error(e).to_dict(),
            )
            raise DocumentStoreError(
                f"Failed to open KV bucket '{self._config.bucket}': {e}",
                operation="connect",
                code="unavailable",
            ) from e
        self._logger.info(f"Connected to KV bucket: {self._config.bucket}", **log_ctx.to_dict())

    async def disconnect(self) -> None:
        """Release every open subscription and close an owned connection."""
        for subscription in list(self._subscriptions):
            await subscription.unsubscribe()
        self._subscriptions.clear()
        self._kv = None
        if self._owns_connection and self._nc is not None and self._nc.is_connected:
            await self._nc.close()
        self._nc = None

    def _require_kv(self, operation: str) -> KeyValue:
        if self._kv is None:
            raise DocumentStoreError(
                "Document store is not connected", operation=operation, code="unavailable"
            )
        return self._kv

    def _decode(
        self, key_path: KeyPath, raw: bytes | None, revision: int | None
    ) -> DocumentSnapshot:
        data = deserialize_document(raw) if raw else None
        return DocumentSnapshot(key_path=str(key_path), data=data, revision=revision)

    async def read(self, key_path: KeyPath) -> DocumentSnapshot:
        kv = self._require_kv("read")
        key = KeySanitizer.to_key(key_path)
        try:
            entry = await kv.get(key)
        except KeyNotFoundError:
            return DocumentSnapshot(key_path=str(key_path), data=None)
        except Exception as e:
            raise _store_error(e, key_path, "read") from e
        return self._decode(key_path, entry.value, entry.revision)

    async def write(self, key_path: KeyPath, data: dict[str, Any], merge: bool = False) -> None:
        kv = self._require_kv("write")
        key = KeySanitizer.to_key(key_path)
        if merge:
            current = await self.read(key_path)
            data = merge_documents(current.data, data)
        payload = serialize_document(data, use_msgpack=self._config.use_msgpack)
        if len(payload) > self._config.max_value_size:
            raise DocumentStoreError(
                f"Document '{key_path}' is {len(payload)} bytes, "
                f"limit is {self._config.max_value_size}",
                key_path=str(key_path),
                operation="write",
            )
        try:
            await kv.put(key, payload)
        except Exception as e:
            raise _store_error(e, key_path, "write") from e
        self._logger.debug(
            f"Wrote document {key_path}",
            **LogContext(
                operation="write", component="NATSDocumentStore", key_path=str(key_path)
            ).to_dict(),
        )

    async def delete(self, key_path: KeyPath) -> None:
        kv = self._require_kv("delete")
        try:
            await kv.delete(KeySanitizer.to_key(key_path))
        except KeyNotFoundError:
            return
        except Exception as e:
            raise _store_error(e, key_path, "delete") from e

    async def subscribe(
        self,
        key_path: KeyPath,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
    ) -> Subscription:
        kv = self._require_kv("subscribe")
        try:
            watcher = await kv.watch(KeySanitizer.to_key(key_path))
        except Exception as e:
            raise _store_error(e, key_path, "subscribe") from e

        subscription = NATSSubscription(key_path, watcher, on_release=self._release)
        subscription.attach(
            asyncio.create_task(self._watch_loop(subscription, watcher, on_snapshot, on_error))
        )
        self._subscriptions.append(subscription)
        return subscription

    def _release(self, subscription: NATSSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def _watch_loop(
        self,
        subscription: NATSSubscription,
        watcher: Any,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None,
    ) -> None:
        """Forward watcher updates until the subscription is released.

        The watcher yields the current value (if any) followed by a ``None``
        marker; an absent document is reported once at that marker.
        """
        key_path = subscription.key_path
        delivered_initial = False
        log_ctx = LogContext(
            operation="watch", component="NATSDocumentStore", key_path=str(key_path)
        )
        try:
            while subscription.is_active:
                try:
                    update = await watcher.updates(timeout=self._config.watch_poll_timeout)
                except (NATSTimeoutError, TimeoutError):
                    continue

                if update is None:
                    if not delivered_initial:
                        delivered_initial = True
                        on_snapshot(DocumentSnapshot(key_path=str(key_path), data=None))
                    continue

                delivered_initial = True
                if update.operation in _DELETE_OPERATIONS:
                    on_snapshot(
                        DocumentSnapshot(
                            key_path=str(key_path), data=None, revision=update.revision
                        )
                    )
                else:
                    on_snapshot(self._decode(key_path, update.value, update.revision))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._logger.error(
                f"Watch failed for {key_path}: {e}", **log_ctx.with_error(e).to_dict()
            )
            if on_error is not None:
                on_error(_store_error(e, key_path, "watch"))
