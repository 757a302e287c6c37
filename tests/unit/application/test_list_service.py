"""Tests for ListService."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from eyedoo_sync.application.list_service import (
    MAX_ITEMS_PER_CATEGORY,
    MAX_ITEMS_PER_LIST,
    ListService,
)
from eyedoo_sync.domain.enums import ErrorCode, ListScope, ListType
from eyedoo_sync.domain.error_mapper import ErrorMapper
from eyedoo_sync.domain.models import ListCategory, ListConfig, TaskItem, TaskList
from eyedoo_sync.domain.result import Err, Ok
from eyedoo_sync.ports.list_repository import ListRepositoryPort


def _list_with(items, categories=None):
    return TaskList(
        config=ListConfig(type=ListType.TASKS),
        categories=categories or [],
        items=items,
    )


@pytest.fixture
def repository():
    """Create a mock list repository."""
    mock = MagicMock(spec=ListRepositoryPort)
    for name in (
        "get_list",
        "save_list",
        "create_or_reset_list",
        "delete_list",
        "add_item",
        "delete_item",
        "batch_update_items",
        "batch_delete_items",
        "subscribe_to_list",
    ):
        setattr(mock, name, AsyncMock(return_value=Ok(None)))
    return mock


@pytest.fixture
def service(repository, mock_logger):
    """Create a task list service over the mock repository."""
    return ListService(repository, TaskItem, service_name="TaskService", logger=mock_logger)


class TestAddItem:
    """Test validation and limits on item additions."""

    @pytest.mark.asyncio
    async def test_valid_item_delegated(self, service, repository, task_list):
        """Test that a valid item is sanitized and passed to the repository."""
        repository.get_list.return_value = Ok(task_list)
        repository.add_item.return_value = Ok("added")

        result = await service.add_user_item(
            "u1", {"id": "t9", "itemName": "Pack   lenses", "categoryId": "cat-prep"}
        )

        assert result == Ok("added")
        scope, owner, item = repository.add_item.call_args[0]
        assert scope is ListScope.USER
        assert owner == "u1"
        assert item.item_name == "Pack lenses"

    @pytest.mark.asyncio
    async def test_invalid_item_rejected(self, service, repository, mock_logger):
        """Test that schema failures never reach the repository."""
        result = await service.add_item(ListScope.USER, "u1", {"id": "t9", "itemName": ""})

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert result.error.context == "TaskService.add_item"
        repository.get_list.assert_not_called()
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_list_limit(self, service, repository):
        """Test the per-list item limit."""
        full = _list_with(
            [TaskItem(id=f"t{i}", item_name=f"Task {i}") for i in range(MAX_ITEMS_PER_LIST)]
        )
        repository.get_list.return_value = Ok(full)

        result = await service.add_item(
            ListScope.MASTER, None, TaskItem(id="new", item_name="One more")
        )

        assert isinstance(result, Err)
        assert result.error.message == "Maximum items limit reached"
        repository.add_item.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_category(self, service, repository, task_list):
        """Test that items must reference an existing category."""
        repository.get_list.return_value = Ok(task_list)

        result = await service.add_user_item(
            "u1", TaskItem(id="t9", item_name="Orphan", category_id="nope")
        )

        assert isinstance(result, Err)
        assert result.error.message == "Category does not exist"
        assert 'Category with ID "nope"' in result.error.user_message

    @pytest.mark.asyncio
    async def test_category_limit(self, service, repository):
        """Test the per-category item limit."""
        category = ListCategory(id="c1", cat_name="Crowded")
        crowded = _list_with(
            [
                TaskItem(id=f"t{i}", item_name=f"Task {i}", category_id="c1")
                for i in range(MAX_ITEMS_PER_CATEGORY)
            ],
            categories=[category],
        )
        repository.get_list.return_value = Ok(crowded)

        result = await service.add_project_item(
            "p1", TaskItem(id="t-new", item_name="Extra", category_id="c1")
        )

        assert isinstance(result, Err)
        assert result.error.message == "Maximum items per category reached"
        assert '"Crowded"' in result.error.user_message

    @pytest.mark.asyncio
    async def test_repository_failure_passed_through(self, service, repository):
        """Test that a failed read is returned unchanged."""
        failure = ErrorMapper.list_not_found("TaskRepository.get_list")
        repository.get_list.return_value = Err(failure)

        result = await service.add_user_item("u1", TaskItem(id="t9", item_name="Task"))

        assert result == Err(failure)


class TestSaveAndReset:
    """Test whole-list operations."""

    @pytest.mark.asyncio
    async def test_save_validates(self, service, repository):
        """Test that invalid lists are rejected."""
        result = await service.save_list(ListScope.MASTER, None, {"items": []})

        assert isinstance(result, Err)
        repository.save_list.assert_not_called()

    @pytest.mark.asyncio
    async def test_upsert_master(self, service, repository, task_list):
        """Test that a valid master list is delegated."""
        result = await service.upsert_master(task_list)

        assert result == Ok(None)
        scope, owner, data = repository.save_list.call_args[0]
        assert scope is ListScope.MASTER
        assert owner is None
        assert isinstance(data, TaskList)

    @pytest.mark.asyncio
    async def test_create_or_reset(self, service, repository, task_list):
        """Test that resets are validated then delegated."""
        result = await service.create_or_reset_list(ListScope.USER, "u1", task_list)

        assert result == Ok(None)
        repository.create_or_reset_list.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_simple_delegation(self, service, repository):
        """Test operations that pass straight through."""
        await service.get_master()
        await service.get_user_list("u1")
        await service.get_project_list("p1")
        await service.delete_list(ListScope.USER, "u1")
        await service.delete_item(ListScope.USER, "u1", "t1")
        await service.batch_delete_items(ListScope.USER, "u1", ["t1"])
        callback = MagicMock()
        await service.subscribe_to_list(ListScope.USER, "u1", callback)

        assert repository.get_list.await_count == 3
        repository.delete_list.assert_awaited_once_with(ListScope.USER, "u1")
        repository.delete_item.assert_awaited_once_with(ListScope.USER, "u1", "t1")
        repository.batch_delete_items.assert_awaited_once_with(ListScope.USER, "u1", ["t1"])
        repository.subscribe_to_list.assert_awaited_once_with(ListScope.USER, "u1", callback)


class TestBatchUpdate:
    """Test batch update checks."""

    @pytest.mark.asyncio
    async def test_sanitizes_text(self, service, repository):
        """Test that name and description are cleaned before delegating."""
        result = await service.batch_update_items(
            ListScope.USER,
            "u1",
            [{"id": "t1", "itemName": "  Renamed   task "}, {"id": "t2", "isChecked": True}],
        )

        assert result == Ok(None)
        _, _, updates = repository.batch_update_items.call_args[0]
        assert updates == [
            {"id": "t1", "itemName": "Renamed task"},
            {"id": "t2", "isChecked": True},
        ]

    @pytest.mark.asyncio
    async def test_requires_id(self, service, repository):
        """Test that every patch must name its item."""
        result = await service.batch_update_items(ListScope.USER, "u1", [{"itemName": "x"}])

        assert isinstance(result, Err)
        assert result.error.message == "Every update must carry an item id"
        repository.batch_update_items.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_invalid_values(self, service, repository):
        """Test that supplied values must satisfy the item schema."""
        result = await service.batch_update_items(
            ListScope.USER, "u1", [{"id": "t1", "itemName": "x" * 80}]
        )

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED
        repository.batch_update_items.assert_not_called()
