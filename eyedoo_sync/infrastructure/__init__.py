"""Infrastructure layer - Concrete implementations of ports."""

from .config import (
    DocumentStoreConfig,
    EnvironmentConfigurationAdapter,
    LogContext,
    NATSConnectionConfig,
    RetryConfig,
    SyncConfiguration,
)
from .document_business_card_repository import DocumentBusinessCardRepository
from .document_list_repository import DocumentListRepository, ListRepositoryConfig
from .in_memory_document_store import InMemoryDocumentStore
from .key_sanitizer import KeySanitizer
from .nats_document_store import NATSDocumentStore
from .simple_logger import SimpleLogger
from .system_clock import SystemClock

__all__ = [
    "DocumentBusinessCardRepository",
    "DocumentListRepository",
    "DocumentStoreConfig",
    "EnvironmentConfigurationAdapter",
    "InMemoryDocumentStore",
    "KeySanitizer",
    "ListRepositoryConfig",
    "LogContext",
    "NATSConnectionConfig",
    "NATSDocumentStore",
    "RetryConfig",
    "SimpleLogger",
    "SyncConfiguration",
    "SystemClock",
]
