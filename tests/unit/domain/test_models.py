"""Tests for list and document models."""

from eyedoo_sync.domain.enums import ListSource, ListType, OperationKind, OptimisticStatus
from eyedoo_sync.domain.error_mapper import ErrorMapper
from eyedoo_sync.domain.models import (
    DocumentSnapshot,
    KitList,
    ListConfig,
    OptimisticUpdate,
    TaskItem,
    TaskList,
    VendorItem,
    VendorType,
)


class TestScopedList:
    """Test the scoped list aggregate."""

    def test_parses_camel_case_document(self):
        """Test parsing a stored camelCase document."""
        parsed = TaskList.model_validate(
            {
                "config": {"id": "tasks", "type": "tasks", "source": "userList", "totalItems": 1},
                "categories": [{"id": "c1", "catName": "Prep"}],
                "items": [{"id": "t1", "itemName": "Pack", "categoryId": "c1"}],
            }
        )

        assert parsed.config.source is ListSource.USER_LIST
        assert parsed.categories[0].cat_name == "Prep"
        assert isinstance(parsed.items[0], TaskItem)

    def test_null_arrays_become_empty(self):
        """Test that null arrays from older documents parse as empty lists."""
        parsed = KitList.model_validate(
            {"config": {"type": "kit"}, "categories": None, "items": None}
        )

        assert parsed.categories == []
        assert parsed.items == []
        assert parsed.pending_updates == []

    def test_unknown_keys_ignored(self):
        """Test that extra stored keys do not break parsing."""
        parsed = TaskList.model_validate({"config": {"type": "tasks"}, "legacyField": 1})

        assert parsed.items == []

    def test_find_item(self, task_list):
        """Test looking up an item by id."""
        assert task_list.find_item("t2").item_name == "Format cards"
        assert task_list.find_item("missing") is None

    def test_to_document_uses_aliases(self, task_list):
        """Test that documents are written with camelCase keys."""
        document = task_list.to_document()

        assert document["config"]["totalItems"] == 0
        assert document["items"][0]["itemName"] == "Charge batteries"
        assert "pendingUpdates" in document

    def test_strings_are_stripped(self):
        """Test whitespace stripping on input."""
        item = TaskItem(id="t1", item_name="  Pack  ")

        assert item.item_name == "Pack"


class TestItemModels:
    """Test specialized item types."""

    def test_vendor_defaults(self):
        """Test vendor item defaults."""
        vendor = VendorItem(id="v1", item_name="Florist Co")

        assert vendor.vendor_type is VendorType.OTHER
        assert vendor.is_preferred is False

    def test_list_config_requires_type(self):
        """Test that the list type is mandatory."""
        config = ListConfig(type=ListType.NOTES)

        assert config.total_categories == 0
        assert config.version == "1.0"


class TestOptimisticUpdate:
    """Test the optimistic update envelope."""

    def test_resolve_success(self):
        """Test confirming an update."""
        update = OptimisticUpdate(OperationKind.ADD, applied_value=[1, 2], rollback_value=[1])

        assert update.status is OptimisticStatus.PENDING

        update.resolve()

        assert update.status is OptimisticStatus.SUCCESS
        assert update.error is None

    def test_resolve_failure(self):
        """Test failing an update records the error."""
        error = ErrorMapper.validation_failed("bad", "ctx")
        update = OptimisticUpdate(OperationKind.DELETE, applied_value=[], rollback_value=[1])

        update.resolve(error)

        assert update.status is OptimisticStatus.FAILED
        assert update.error is error


class TestDocumentSnapshot:
    """Test the raw snapshot value."""

    def test_exists(self):
        """Test the existence flag."""
        assert DocumentSnapshot(key_path="users/u1", data={"a": 1}).exists
        assert not DocumentSnapshot(key_path="users/u1").exists
