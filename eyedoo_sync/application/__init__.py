"""Application layer - Services and consumer-side state drivers."""

from .error_recovery import (
    CircuitBreaker,
    with_fallback,
    with_recovery_strategies,
    with_retry,
    with_timeout,
)
from .list_controller import ListController
from .list_service import MAX_ITEMS_PER_CATEGORY, MAX_ITEMS_PER_LIST, ListService
from .optimistic_update import OptimisticUpdater

__all__ = [
    "MAX_ITEMS_PER_CATEGORY",
    "MAX_ITEMS_PER_LIST",
    "CircuitBreaker",
    "ListController",
    "ListService",
    "OptimisticUpdater",
    "with_fallback",
    "with_recovery_strategies",
    "with_retry",
    "with_timeout",
]
