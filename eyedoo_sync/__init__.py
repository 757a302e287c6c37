"""Eye-Doo sync core.

Validated, sanitized list and document storage over a remote key-path store,
with Result-based error handling, loading-state tracking and optimistic
updates. Built on NATS JetStream KeyValue.
"""

__version__ = "0.1.0"

from .application.list_controller import ListController
from .application.list_service import ListService
from .application.optimistic_update import OptimisticUpdater
from .domain.enums import ErrorCode, ListScope, ListType
from .domain.exceptions import AppError
from .domain.result import Err, Ok, Result
from .infrastructure.document_list_repository import DocumentListRepository, ListRepositoryConfig

__all__ = [
    "AppError",
    "DocumentListRepository",
    "Err",
    "ErrorCode",
    "ListController",
    "ListRepositoryConfig",
    "ListScope",
    "ListService",
    "ListType",
    "Ok",
    "OptimisticUpdater",
    "Result",
]
