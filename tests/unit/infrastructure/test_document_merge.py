"""Tests for merge-write semantics."""

from eyedoo_sync.infrastructure.document_merge import merge_documents


class TestMergeDocuments:
    """Test deep merging of documents."""

    def test_merge_into_nothing(self):
        """Test merging into an absent document."""
        assert merge_documents(None, {"a": 1}) == {"a": 1}

    def test_nested_mappings_merge(self):
        """Test that nested mappings merge key by key."""
        existing = {"config": {"type": "tasks", "totalItems": 1}, "name": "x"}

        merged = merge_documents(existing, {"config": {"totalItems": 2}})

        assert merged == {"config": {"type": "tasks", "totalItems": 2}, "name": "x"}

    def test_lists_replaced(self):
        """Test that lists are replaced rather than concatenated."""
        merged = merge_documents({"items": [1, 2, 3]}, {"items": [4]})

        assert merged == {"items": [4]}

    def test_none_overwrites(self):
        """Test that an explicit None clears a stored value."""
        merged = merge_documents({"businessCard": {"firstName": "Jane"}}, {"businessCard": None})

        assert merged == {"businessCard": None}

    def test_inputs_not_mutated(self):
        """Test that neither argument is modified."""
        existing = {"config": {"a": 1}}
        incoming = {"config": {"b": 2}}

        merged = merge_documents(existing, incoming)
        merged["config"]["c"] = 3

        assert existing == {"config": {"a": 1}}
        assert incoming == {"config": {"b": 2}}
