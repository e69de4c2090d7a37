"""Metadata flattening for scalar-only vector stores."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Union

# Values a flattened mapping may hold. Lists and dates are kept as-is;
# only nested mappings are expanded into dot-joined keys.
MetadataValue = Union[str, int, float, bool, None, list, tuple, date, datetime]


def flatten_metadata(
    metadata: Mapping[str, Any],
    extra: Mapping[str, Any] | None = None,
) -> dict[str, MetadataValue]:
    """Flatten nested mappings in *metadata* into ``parent.child`` keys.

    *extra* is applied first, so keys coming from *metadata* win on
    collision.

    >>> flatten_metadata({"loc": {"lines": {"from": 1, "to": 4}}}, {"chunk_index": 0})
    {'chunk_index': 0, 'loc.lines.from': 1, 'loc.lines.to': 4}
    """
    flat: dict[str, MetadataValue] = dict(extra or {})
    _flatten_into(flat, metadata, "")
    return flat


def _flatten_into(target: dict[str, MetadataValue], value: Mapping[str, Any], prefix: str) -> None:
    for key, item in value.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(item, Mapping):
            _flatten_into(target, item, name)
        else:
            target[name] = item
