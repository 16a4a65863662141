"""Field authority resolution and record merge strategies."""

from .authority import (
    DEFAULT_MODEL_FIELD_AUTHORITIES,
    DEFAULT_PROVIDER_FIELD_AUTHORITIES,
    UNKNOWN_SOURCE,
    AuthorityResolver,
    FieldAuthority,
    SourceRef,
    SourceType,
    apply_custom_authorities,
    filter_authorities_by_source,
    is_empty,
    matches_pattern,
)
from .strategies import MergeStrategy, Provenance, merge_records, record_fields

__all__ = [
    "DEFAULT_MODEL_FIELD_AUTHORITIES",
    "DEFAULT_PROVIDER_FIELD_AUTHORITIES",
    "UNKNOWN_SOURCE",
    "AuthorityResolver",
    "FieldAuthority",
    "SourceRef",
    "SourceType",
    "apply_custom_authorities",
    "filter_authorities_by_source",
    "is_empty",
    "matches_pattern",
    "MergeStrategy",
    "Provenance",
    "merge_records",
    "record_fields",
]
