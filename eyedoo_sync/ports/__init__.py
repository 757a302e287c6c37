"""Ports layer - interfaces implemented by infrastructure adapters."""

from .business_card_repository import BusinessCardRepositoryPort
from .clock import ClockPort
from .document_store import DocumentStorePort, Subscription
from .list_repository import ListRepositoryPort
from .logger import LoggerPort

__all__ = [
    "BusinessCardRepositoryPort",
    "ClockPort",
    "DocumentStorePort",
    "ListRepositoryPort",
    "LoggerPort",
    "Subscription",
]
