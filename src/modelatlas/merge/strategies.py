"""
Record-level merge strategies.

Records (models and providers) are compared as flat leaf paths of their
dumped form; the chosen values are rebuilt and re-validated into a record of
the same type.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Tuple, TypeVar

from pydantic import BaseModel

from .authority import UNKNOWN_SOURCE, AuthorityResolver, SourceRef, is_empty

R = TypeVar("R", bound=BaseModel)

Provenance = Dict[str, SourceRef]


class MergeStrategy(str, Enum):
    """
    How an incoming record is combined with an existing one of the same ID.
    """

    # Field by field, authoritative source first, then priority
    AUTHORITY = "authority"
    # Incoming record replaces the existing one wholesale
    REPLACE_ALL = "replace_all"
    # Keep existing values, only fill the empty ones
    ENRICH_EMPTY = "enrich_empty"
    # Existing IDs are left untouched
    APPEND_ONLY = "append_only"

    def __str__(self) -> str:
        return self.value


def flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """
    Flatten nested mappings into ``{"a.b.c": value}``; lists are leaves and
    empty values are dropped.
    """
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten(value, path))
        elif not is_empty(value):
            flat[path] = value
    return flat


def unflatten(flat: Mapping[str, Any]) -> Dict[str, Any]:
    nested: Dict[str, Any] = {}
    for path, value in flat.items():
        *parents, leaf = path.split(".")
        node = nested
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value
    return nested


def record_fields(record: BaseModel) -> Dict[str, Any]:
    """
    Non-empty leaf values of a record, keyed by field path, without its ``id``.
    """
    return flatten(record.model_dump(exclude_none=True, exclude={"id"}))


def uniform_provenance(record: BaseModel, source: SourceRef) -> Provenance:
    return {path: source for path in record_fields(record)}


def merge_records(
    existing: R,
    existing_provenance: Mapping[str, SourceRef],
    incoming: R,
    incoming_provenance: Mapping[str, SourceRef],
    strategy: MergeStrategy,
    resolver: AuthorityResolver,
) -> Tuple[R, Provenance]:
    """
    Combine two records sharing an ID according to ``strategy``.

    Raises ``pydantic.ValidationError`` when the combined values do not form a
    valid record.
    """
    if strategy is MergeStrategy.REPLACE_ALL:
        return incoming.model_copy(deep=True), dict(incoming_provenance)
    if strategy is MergeStrategy.APPEND_ONLY:
        return existing, dict(existing_provenance)

    merged = record_fields(existing)
    provenance: Provenance = {
        path: existing_provenance.get(path, UNKNOWN_SOURCE) for path in merged
    }

    for path, value in record_fields(incoming).items():
        source = incoming_provenance.get(path, UNKNOWN_SOURCE)
        if path not in merged:
            take = True
        elif strategy is MergeStrategy.ENRICH_EMPTY:
            take = False
        else:
            take = resolver.prefer_incoming(
                path, merged[path], provenance[path], value, source
            )
        if take:
            merged[path] = value
            provenance[path] = source

    data = unflatten(merged)
    data["id"] = getattr(existing, "id")
    return type(existing).model_validate(data), provenance
