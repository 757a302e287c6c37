"""Tests for DocumentListRepository over the in-memory store."""

import pytest
import pytest_asyncio

from eyedoo_sync.domain.enums import ErrorCode, ListScope, ListSource, ListType
from eyedoo_sync.domain.exceptions import DocumentStoreError, RepositoryConfigurationError
from eyedoo_sync.domain.key_paths import master_list_path, user_list_path
from eyedoo_sync.domain.models import KeyPersonItem, ListConfig, TaskItem, TaskList
from eyedoo_sync.domain.result import Err, Ok
from eyedoo_sync.domain.timestamps import to_store_timestamp
from eyedoo_sync.infrastructure.document_list_repository import (
    DocumentListRepository,
    ListRepositoryConfig,
)
from eyedoo_sync.ports.list_repository import ListRepositoryPort

USER_PATH = user_list_path(ListType.TASKS, "u1")
MASTER_PATH = master_list_path(ListType.TASKS)


@pytest_asyncio.fixture
async def seeded(task_repository, task_list):
    """Repository with a user list created from the task template."""
    result = await task_repository.create_or_reset_user_list("u1", task_list)
    assert result == Ok(None)
    return task_repository


class TestListRepositoryConfig:
    """Test repository configuration validation."""

    def test_for_list_type(self):
        """Test building a config from the standard paths."""
        config = ListRepositoryConfig.for_list_type(ListType.TASKS, TaskItem)

        assert config.service_name == "TaskItemRepository"
        assert str(config.master_path()) == "masterData/task"
        assert str(config.user_path("u1")) == "users/u1/lists/taskList"
        assert config.list_schema is TaskList

    def test_item_schema_must_be_list_item(self):
        """Test that non-item schemas are rejected."""
        with pytest.raises(RepositoryConfigurationError, match="ListItem subclass"):
            ListRepositoryConfig(
                list_type=ListType.TASKS, item_schema=ListConfig, master_path=lambda: MASTER_PATH
            )

    def test_requires_a_path_builder(self):
        """Test that at least one scope must be addressable."""
        with pytest.raises(RepositoryConfigurationError, match="path builder"):
            ListRepositoryConfig(list_type=ListType.TASKS, item_schema=TaskItem)

    def test_repository_rejects_bad_config(self, store):
        """Test constructor validation."""
        with pytest.raises(RepositoryConfigurationError):
            DocumentListRepository(store, {"list_type": "tasks"})

    def test_implements_port(self, task_repository):
        """Test that the repository implements ListRepositoryPort."""
        assert isinstance(task_repository, ListRepositoryPort)


class TestGetList:
    """Test reading lists."""

    @pytest.mark.asyncio
    async def test_missing_master_returns_default(self, task_repository, store, clock):
        """Test that an absent master list yields an empty default list."""
        result = await task_repository.get_master()

        assert isinstance(result, Ok)
        assert result.value.items == []
        assert result.value.config.type is ListType.TASKS
        assert result.value.config.default_values is True
        assert result.value.config.created_at == clock.now()
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_missing_user_list_is_not_found(self, task_repository, mock_logger):
        """Test that an absent user list is a not-found error."""
        result = await task_repository.get_user_list("u1")

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.DB_NOT_FOUND
        assert result.error.context == "TaskItemRepository.get_list"
        mock_logger.error.assert_called_once()

    @pytest.mark.asyncio
    async def test_round_trip(self, seeded, task_list, clock):
        """Test that a created list reads back with its items and stamps."""
        result = await seeded.get_user_list("u1")

        assert isinstance(result, Ok)
        assert [item.id for item in result.value.items] == ["t1", "t2", "t3"]
        assert result.value.config.source is ListSource.USER_LIST
        assert result.value.config.created_at == clock.now()
        assert result.value.config.last_modified_by == "u1"

    @pytest.mark.asyncio
    async def test_corrupt_document(self, task_repository, store, mock_logger):
        """Test that a stored document failing validation is a data-integrity error."""
        store.seed(USER_PATH, {"config": {"type": "not-a-type"}, "items": "nope"})

        result = await task_repository.get_user_list("u1")

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.DB_VALIDATION_ERROR
        assert result.error.retryable is False
        assert result.error.field_errors
        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_counts_recomputed_on_read(self, task_repository, store):
        """Test that stale stored counts are never trusted."""
        store.seed(
            MASTER_PATH,
            {
                "config": {"type": "tasks", "totalItems": 99, "totalCategories": 42},
                "categories": [{"id": "c1", "catName": "One"}],
                "items": [{"id": "a", "itemName": "A", "categoryId": "c1"}],
            },
        )

        result = await task_repository.get_master()

        assert result.value.config.total_items == 1
        assert result.value.config.total_categories == 1

    @pytest.mark.asyncio
    async def test_store_unavailable(self, task_repository, store):
        """Test that a transient store failure is retryable."""
        store.inject_failure("read", DocumentStoreError("down", code="unavailable"))

        result = await task_repository.get_master()

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.DB_NETWORK_ERROR
        assert result.error.retryable is True


class TestScopeResolution:
    """Test scope and owner validation."""

    @pytest.mark.asyncio
    async def test_owner_required(self, task_repository):
        """Test that user lists need an owner id."""
        result = await task_repository.get_list(ListScope.USER, None)

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    @pytest.mark.asyncio
    async def test_invalid_owner(self, task_repository):
        """Test that owner ids that cannot form a path are rejected."""
        result = await task_repository.get_user_list("bad/id")

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    @pytest.mark.asyncio
    async def test_unsupported_scope(self, store, mock_logger):
        """Test that list types without a master list reject master access."""
        repository = DocumentListRepository(
            store,
            ListRepositoryConfig.for_list_type(ListType.KEY_PEOPLE, KeyPersonItem),
            logger=mock_logger,
        )

        result = await repository.get_master()

        assert isinstance(result, Err)
        assert "no master scope" in result.error.message


class TestSaveList:
    """Test saving whole lists."""

    @pytest.mark.asyncio
    async def test_counts_and_stamps_written(self, task_repository, store, task_list, clock):
        """Test that totals are recomputed and timestamps encoded on write."""
        result = await task_repository.upsert_master(task_list)

        assert result == Ok(None)
        path, document, merge = store.writes[-1]
        assert path == MASTER_PATH
        assert merge is True
        assert document["config"]["totalItems"] == 3
        assert document["config"]["totalCategories"] == 1
        assert document["config"]["lastModifiedBy"] == "master"
        assert document["config"]["updatedAt"] == to_store_timestamp(clock.now())

    @pytest.mark.asyncio
    async def test_accepts_mapping(self, task_repository, store):
        """Test that a raw camelCase mapping is validated and saved."""
        result = await task_repository.save_list(
            ListScope.MASTER,
            None,
            {"config": {"type": "tasks"}, "items": [{"id": "a", "itemName": "  A   b "}]},
        )

        assert result == Ok(None)
        assert store.get_raw(MASTER_PATH)["items"][0]["itemName"] == "A b"

    @pytest.mark.asyncio
    async def test_invalid_mapping_not_written(self, task_repository, store):
        """Test that invalid lists are rejected before any write."""
        result = await task_repository.save_list(
            ListScope.MASTER, None, {"config": {"type": "tasks"}, "items": [{"id": ""}]}
        )

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert store.writes == []


class TestCreateOrResetAndDelete:
    """Test list lifecycle operations."""

    @pytest.mark.asyncio
    async def test_reset_overwrites(self, seeded, store, task_list):
        """Test that a reset replaces the whole document."""
        store.seed(USER_PATH, {**store.get_raw(USER_PATH), "stray": True})

        smaller = task_list.model_copy(update={"items": task_list.items[:1]})
        result = await seeded.create_or_reset_user_list("u1", smaller)

        assert result == Ok(None)
        raw = store.get_raw(USER_PATH)
        assert "stray" not in raw
        assert raw["config"]["totalItems"] == 1
        assert raw["config"]["source"] == "userList"
        assert store.writes[-1][2] is False

    @pytest.mark.asyncio
    async def test_master_cannot_be_reset(self, task_repository, task_list):
        """Test that resetting the master list is rejected."""
        result = await task_repository.create_or_reset_list(ListScope.MASTER, "x", task_list)

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED

    @pytest.mark.asyncio
    async def test_delete_list(self, seeded, store):
        """Test deleting a user list."""
        result = await seeded.delete_user_list("u1")

        assert result == Ok(None)
        assert store.get_raw(USER_PATH) is None


class TestItemOperations:
    """Test single-item and batch operations."""

    @pytest.mark.asyncio
    async def test_add_item(self, seeded, store):
        """Test adding an item sanitizes it and updates the totals."""
        result = await seeded.add_user_item(
            "u1", TaskItem(id="t4", item_name="Pack   spare  lenses")
        )

        assert isinstance(result, Ok)
        assert result.value.item_name == "Pack spare lenses"
        raw = store.get_raw(USER_PATH)
        assert raw["config"]["totalItems"] == 4
        assert raw["items"][-1]["id"] == "t4"

    @pytest.mark.asyncio
    async def test_add_duplicate_rejected_without_write(self, seeded, store):
        """Test that a duplicate id leaves the list untouched."""
        writes_before = len(store.writes)

        result = await seeded.add_user_item("u1", TaskItem(id="t1", item_name="Again"))

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert result.error.user_message == "This item already exists in the list"
        assert len(store.writes) == writes_before

    @pytest.mark.asyncio
    async def test_add_item_write_denied(self, seeded, store):
        """Test that a rejected write surfaces as a permission error."""
        store.inject_failure("write", DocumentStoreError("denied", code="permission-denied"))

        result = await seeded.add_user_item("u1", TaskItem(id="t9", item_name="New"))

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.DB_PERMISSION_DENIED
        assert result.error.retryable is False

    @pytest.mark.asyncio
    async def test_delete_item_writes_patch(self, seeded, store):
        """Test that deleting an item merge-writes only items and counts."""
        result = await seeded.delete_user_item("u1", "t3")

        assert result == Ok(None)
        _, patch, merge = store.writes[-1]
        assert merge is True
        assert set(patch) == {"config", "items"}
        assert set(patch["config"]) == {
            "totalCategories",
            "totalItems",
            "lastModifiedBy",
            "updatedAt",
        }
        raw = store.get_raw(USER_PATH)
        assert raw["config"]["type"] == "tasks"
        assert raw["config"]["totalItems"] == 2
        assert [item["id"] for item in raw["items"]] == ["t1", "t2"]

    @pytest.mark.asyncio
    async def test_delete_unknown_item_is_noop(self, seeded):
        """Test that deleting a missing id succeeds and changes nothing."""
        result = await seeded.delete_user_item("u1", "ghost")
        listed = await seeded.get_user_list("u1")

        assert result == Ok(None)
        assert len(listed.value.items) == 3

    @pytest.mark.asyncio
    async def test_batch_update(self, seeded):
        """Test patching several items with either key spelling."""
        result = await seeded.batch_update_user_items(
            "u1",
            [
                {"id": "t1", "itemName": "Charge all batteries"},
                {"id": "t2", "is_checked": True},
            ],
        )
        listed = await seeded.get_user_list("u1")

        assert result == Ok(None)
        assert listed.value.find_item("t1").item_name == "Charge all batteries"
        assert listed.value.find_item("t2").is_checked is True
        assert listed.value.find_item("t3").is_checked is False

    @pytest.mark.asyncio
    async def test_batch_update_unknown_ids_dropped(self, seeded):
        """Test that patches for missing ids are skipped."""
        result = await seeded.batch_update_user_items("u1", [{"id": "ghost", "itemName": "x"}])
        listed = await seeded.get_user_list("u1")

        assert result == Ok(None)
        assert [item.item_name for item in listed.value.items] == [
            "Charge batteries",
            "Format cards",
            "Confirm timeline",
        ]

    @pytest.mark.asyncio
    async def test_batch_update_invalid_patch(self, seeded, store):
        """Test that a patch producing an invalid item fails the whole batch."""
        writes_before = len(store.writes)

        result = await seeded.batch_update_user_items("u1", [{"id": "t1", "itemName": ""}])

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.VALIDATION_FAILED
        assert len(store.writes) == writes_before

    @pytest.mark.asyncio
    async def test_batch_delete(self, seeded, store):
        """Test removing several items in one write."""
        writes_before = len(store.writes)

        result = await seeded.batch_delete_user_items("u1", ["t1", "t2", "ghost"])

        assert result == Ok(None)
        assert len(store.writes) == writes_before + 1
        raw = store.get_raw(USER_PATH)
        assert raw["config"]["totalItems"] == 1
        assert raw["config"]["totalCategories"] == 0


class TestSubscribe:
    """Test live list subscriptions."""

    @pytest.mark.asyncio
    async def test_receives_current_and_changes(self, seeded):
        """Test that subscribers get the current list then each update."""
        received = []

        result = await seeded.subscribe_to_user_list("u1", received.append)
        await seeded.add_user_item("u1", TaskItem(id="t4", item_name="New"))

        assert isinstance(result, Ok)
        assert len(received) == 2
        assert len(received[0].value.items) == 3
        assert len(received[1].value.items) == 4

        await result.value.unsubscribe()

    @pytest.mark.asyncio
    async def test_absent_document(self, task_repository):
        """Test that an absent document is delivered as Ok(None)."""
        received = []

        await task_repository.subscribe_to_master_list(received.append)

        assert received == [Ok(None)]

    @pytest.mark.asyncio
    async def test_listener_error_mapped(self, task_repository, store):
        """Test that listener failures arrive as mapped errors."""
        received = []
        await task_repository.subscribe_to_master_list(received.append)

        store.emit_error(MASTER_PATH, DocumentStoreError("gone", code="unavailable"))

        assert isinstance(received[-1], Err)
        assert received[-1].error.code == ErrorCode.DB_NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_subscribe_failure(self, task_repository, store):
        """Test that a failed subscribe returns Err."""
        store.inject_failure("subscribe", RuntimeError("permission-denied"))

        result = await task_repository.subscribe_to_master_list(lambda r: None)

        assert isinstance(result, Err)
        assert result.error.code == ErrorCode.DB_PERMISSION_DENIED


class TestNamedOperations:
    """Test the per-scope convenience methods delegate to the right document."""

    @pytest.mark.asyncio
    async def test_master_item_operations(self, task_repository, store):
        """Test adding, patching and deleting master items."""
        await task_repository.add_master_item(TaskItem(id="m1", item_name="Template task"))
        await task_repository.batch_update_master_items([{"id": "m1", "isDisabled": True}])

        listed = await task_repository.get_master()
        assert listed.value.find_item("m1").is_disabled is True

        await task_repository.delete_master_item("m1")
        await task_repository.batch_delete_master_items(["m1"])

        assert store.get_raw(MASTER_PATH)["items"] == []

    @pytest.mark.asyncio
    async def test_project_operations(self, task_repository, store, task_list):
        """Test the project-scoped wrappers."""
        await task_repository.create_or_reset_project_list("p1", task_list)
        await task_repository.add_project_item("p1", TaskItem(id="p-t", item_name="Venue walk"))
        await task_repository.batch_update_project_items("p1", [{"id": "p-t", "isChecked": True}])
        await task_repository.delete_project_item("p1", "t1")
        await task_repository.batch_delete_project_items("p1", ["t2"])

        listed = await task_repository.get_project_list("p1")

        assert [item.id for item in listed.value.items] == ["t3", "p-t"]
        assert listed.value.config.source is ListSource.PROJECT_LIST
        assert listed.value.find_item("p-t").is_checked is True

        await task_repository.save_project_list("p1", listed.value)
        assert (await task_repository.delete_project_list("p1")) == Ok(None)
        assert store.get_all() == {}


class TestMissingMasterDocument:
    """Test item operations on a master list that has never been stored."""

    @pytest.mark.asyncio
    async def test_delete_creates_readable_default(self, task_repository, store):
        """Test that deleting from an absent master list stores a complete document."""
        assert await task_repository.delete_master_item("nope") == Ok(None)

        _, document, merge = store.writes[-1]
        assert merge is False
        assert document["config"]["type"] == ListType.TASKS.value

        result = await task_repository.get_master()
        assert isinstance(result, Ok)
        assert result.value.items == []
        assert result.value.config.total_items == 0

    @pytest.mark.asyncio
    async def test_batch_update_unknown_id(self, task_repository):
        """Test that patching an absent master list leaves it readable and empty."""
        result = await task_repository.batch_update_master_items([{"id": "x", "itemName": "X"}])

        assert result == Ok(None)
        listed = await task_repository.get_master()
        assert isinstance(listed, Ok)
        assert listed.value.items == []

    @pytest.mark.asyncio
    async def test_batch_delete_keeps_default(self, task_repository):
        """Test that batch deleting from an absent master list keeps it readable."""
        assert await task_repository.batch_delete_master_items(["a", "b"]) == Ok(None)

        listed = await task_repository.get_master()
        assert isinstance(listed, Ok)
        assert listed.value.config.type is ListType.TASKS

    @pytest.mark.asyncio
    async def test_stored_master_still_patched(self, task_repository, store):
        """Test that an existing master document keeps receiving merge patches."""
        await task_repository.add_master_item(TaskItem(id="m1", item_name="Template task"))

        await task_repository.delete_master_item("m1")

        _, patch, merge = store.writes[-1]
        assert merge is True
        assert set(patch["config"]) == {
            "totalCategories",
            "totalItems",
            "lastModifiedBy",
            "updatedAt",
        }
