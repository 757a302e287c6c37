"""Pytest configuration and shared fixtures."""

import os
import time
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from testcontainers.nats import NatsContainer

from eyedoo_sync.domain.enums import ListSource, ListType
from eyedoo_sync.domain.models import ListCategory, ListConfig, TaskItem, TaskList
from eyedoo_sync.infrastructure.document_list_repository import (
    DocumentListRepository,
    ListRepositoryConfig,
)
from eyedoo_sync.infrastructure.in_memory_document_store import InMemoryDocumentStore
from eyedoo_sync.ports.clock import ClockPort

FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


class FixedClock(ClockPort):
    """Clock that only moves when told to."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, milliseconds: int) -> None:
        self.current += timedelta(milliseconds=milliseconds)


@pytest.fixture(scope="session")
def nats_container():
    """Start NATS container for integration tests."""
    # Skip if explicitly disabled
    if os.getenv("SKIP_INTEGRATION_TESTS", "").lower() == "true":
        pytest.skip("Integration tests disabled")

    # Use existing NATS if available
    if os.getenv("NATS_URL"):
        yield os.getenv("NATS_URL")
        return

    # Start NATS container
    container = NatsContainer("nats:2.10-alpine")
    container.with_command("-js")  # Enable JetStream
    container.start()

    # Wait for NATS to be ready
    time.sleep(2)

    nats_url = f"nats://localhost:{container.get_exposed_port(4222)}"
    yield nats_url

    container.stop()


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    mock = MagicMock()
    mock.info = MagicMock()
    mock.warning = MagicMock()
    mock.error = MagicMock()
    mock.debug = MagicMock()
    mock.exception = MagicMock()
    return mock


@pytest.fixture
def clock():
    """Create a controllable clock pinned to a known instant."""
    return FixedClock()


@pytest.fixture
def store():
    """Create a fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def task_repository(store, mock_logger, clock):
    """Create a task list repository over the in-memory store."""
    config = ListRepositoryConfig.for_list_type(ListType.TASKS, TaskItem)
    return DocumentListRepository(store, config, logger=mock_logger, clock=clock)


@pytest.fixture
def task_list():
    """Create a task list with two categories and three items."""
    return TaskList(
        config=ListConfig(id="tasks", type=ListType.TASKS, source=ListSource.MASTER_LIST),
        categories=[
            ListCategory(id="cat-prep", cat_name="Preparation"),
            ListCategory(id="cat-empty", cat_name="Unused"),
        ],
        items=[
            TaskItem(id="t1", category_id="cat-prep", item_name="Charge batteries"),
            TaskItem(id="t2", category_id="cat-prep", item_name="Format cards"),
            TaskItem(id="t3", item_name="Confirm timeline"),
        ],
    )
