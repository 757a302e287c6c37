"""Merge-write semantics shared by the document store adapters."""

import copy
from collections.abc import Mapping
from typing import Any


def merge_documents(
    existing: Mapping[str, Any] | None, incoming: Mapping[str, Any]
) -> dict[str, Any]:
    """Deep-merge ``incoming`` into ``existing``.

    Nested mappings merge key by key; lists and scalars from ``incoming``
    replace what was stored. Neither argument is mutated.
    """
    merged = copy.deepcopy(dict(existing)) if existing else {}
    for key, value in incoming.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_documents(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
