"""
Field authority tables and the resolver that picks a winning value per field.

A ``FieldAuthority`` says "source type X is authoritative for field path Y".
Paths are dot-separated leaf paths of a dumped record (``limits.context_window``)
and declarations may use a trailing ``*`` or glob syntax.
"""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from modelatlas.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SourceType(str, Enum):
    """
    Stable identity of a source kind.
    """

    LOCAL_CATALOG = "local_catalog"
    PROVIDER_API = "provider_api"

    def __str__(self) -> str:
        return self.value


class FieldAuthority(BaseModel):
    """
    Declares ``source`` as the authoritative source type for ``field_path``.
    """

    field_path: str = Field(..., min_length=1, description="Dot path or glob")
    source: SourceType

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class SourceRef:
    """
    Where a value came from: source type, its priority and registry position.
    """

    source_type: Optional[SourceType]
    priority: int = 0
    order: int = 0

    def describe(self) -> str:
        kind = self.source_type.value if self.source_type else "unknown"
        return f"{kind}(priority={self.priority})"


UNKNOWN_SOURCE = SourceRef(source_type=None, priority=0, order=0)


DEFAULT_MODEL_FIELD_AUTHORITIES: Tuple[FieldAuthority, ...] = tuple(
    FieldAuthority(field_path=path, source=source)
    for path, source in [
        # Pricing is curated locally
        ("pricing.*", SourceType.LOCAL_CATALOG),
        # Limits
        ("limits.context_window", SourceType.LOCAL_CATALOG),
        ("limits.max_output", SourceType.LOCAL_CATALOG),
        ("limits.request_timeout", SourceType.PROVIDER_API),
        # Capabilities reported live by the provider
        ("features.*", SourceType.PROVIDER_API),
        ("features.modalities.*", SourceType.LOCAL_CATALOG),
        ("generation.*", SourceType.PROVIDER_API),
        # Descriptive metadata
        ("metadata.*", SourceType.LOCAL_CATALOG),
        ("description", SourceType.LOCAL_CATALOG),
        ("name", SourceType.LOCAL_CATALOG),
        ("authors", SourceType.LOCAL_CATALOG),
        ("created_at", SourceType.PROVIDER_API),
    ]
)

DEFAULT_PROVIDER_FIELD_AUTHORITIES: Tuple[FieldAuthority, ...] = tuple(
    FieldAuthority(field_path=path, source=SourceType.LOCAL_CATALOG)
    for path in [
        "api_key.*",
        "env_vars",
        "base_url",
        "name",
        "headquarters",
        "icon_url",
        "status_page_url",
    ]
)


def is_empty(value: Any) -> bool:
    """
    ``None``, empty strings and empty collections never count as a value.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def matches_pattern(field_path: str, pattern: str) -> bool:
    """
    Exact match, trailing ``*`` prefix match, then shell-style glob.
    """
    if field_path == pattern:
        return True
    if pattern.endswith("*") and not any(c in pattern[:-1] for c in "*?["):
        return field_path.startswith(pattern[:-1])
    return fnmatch.fnmatchcase(field_path, pattern)


def filter_authorities_by_source(
    authorities: Iterable[FieldAuthority], source_type: SourceType
) -> List[FieldAuthority]:
    """
    Declarations naming ``source_type``, in declaration order.
    """
    return [a for a in authorities if a.source == source_type]


def apply_custom_authorities(
    defaults: Sequence[FieldAuthority], custom: Optional[Sequence[FieldAuthority]]
) -> List[FieldAuthority]:
    """
    Overlay ``custom`` on ``defaults``: same-pattern declarations are replaced
    in place, new patterns are appended.
    """
    if not custom:
        return list(defaults)
    overrides: Dict[str, FieldAuthority] = {}
    for authority in custom:
        previous = overrides.get(authority.field_path)
        if previous is not None and previous.source != authority.source:
            raise ConfigurationError(
                "field_authorities",
                f"'{authority.field_path}' declared for both "
                f"{previous.source} and {authority.source}",
            )
        overrides[authority.field_path] = authority
    merged = [overrides.pop(a.field_path, a) for a in defaults]
    merged.extend(overrides.values())
    return merged


class AuthorityResolver:
    """
    Resolves which candidate value wins for a given field path.

    Ranking is a total order over candidates of one field: a non-empty value
    from the authoritative source type first, then higher priority, then
    lower registry position.
    """

    def __init__(self, authorities: Iterable[FieldAuthority]):
        self._authorities: List[FieldAuthority] = self._validate(list(authorities))
        self._cache: Dict[str, Optional[FieldAuthority]] = {}

    @classmethod
    def for_models(
        cls, custom: Optional[Sequence[FieldAuthority]] = None
    ) -> "AuthorityResolver":
        return cls(apply_custom_authorities(DEFAULT_MODEL_FIELD_AUTHORITIES, custom))

    @classmethod
    def for_providers(
        cls, custom: Optional[Sequence[FieldAuthority]] = None
    ) -> "AuthorityResolver":
        return cls(apply_custom_authorities(DEFAULT_PROVIDER_FIELD_AUTHORITIES, custom))

    @staticmethod
    def _validate(authorities: List[FieldAuthority]) -> List[FieldAuthority]:
        seen: Dict[str, FieldAuthority] = {}
        unique = []
        for authority in authorities:
            previous = seen.get(authority.field_path)
            if previous is None:
                seen[authority.field_path] = authority
                unique.append(authority)
            elif previous.source != authority.source:
                raise ConfigurationError(
                    "field_authorities",
                    f"'{authority.field_path}' declared for both "
                    f"{previous.source} and {authority.source}",
                )
            else:
                logger.debug(f"Ignoring duplicate authority for '{authority.field_path}'")
        return unique

    @property
    def authorities(self) -> List[FieldAuthority]:
        return list(self._authorities)

    def for_source(self, source_type: SourceType) -> List[FieldAuthority]:
        return filter_authorities_by_source(self._authorities, source_type)

    def authority_for(self, field_path: str) -> Optional[FieldAuthority]:
        """
        The most specific matching declaration (longest pattern, then first
        declared), or ``None`` when no declaration covers the path.
        """
        if field_path in self._cache:
            return self._cache[field_path]
        best: Optional[FieldAuthority] = None
        for authority in self._authorities:
            if not matches_pattern(field_path, authority.field_path):
                continue
            if best is None or len(authority.field_path) > len(best.field_path):
                best = authority
        self._cache[field_path] = best
        return best

    def authoritative_source(self, field_path: str) -> Optional[SourceType]:
        authority = self.authority_for(field_path)
        return authority.source if authority else None

    def rank(self, field_path: str, source: SourceRef) -> Tuple[bool, int, int]:
        authoritative = (
            source.source_type is not None
            and source.source_type == self.authoritative_source(field_path)
        )
        return (authoritative, source.priority, -source.order)

    def prefer_incoming(
        self,
        field_path: str,
        current: Any,
        current_source: SourceRef,
        incoming: Any,
        incoming_source: SourceRef,
    ) -> bool:
        """
        True when ``incoming`` should replace ``current`` for ``field_path``.

        Empty values never win; equal ranks (same source) favour the newer value.
        """
        if is_empty(incoming):
            return False
        if is_empty(current):
            return True
        return self.rank(field_path, incoming_source) >= self.rank(
            field_path, current_source
        )

    def resolve(
        self, field_path: str, candidates: Iterable[Tuple[Any, SourceRef]]
    ) -> Optional[Tuple[Any, SourceRef]]:
        """
        Pick the winning ``(value, source)`` among ``candidates``.
        """
        winner: Optional[Tuple[Any, SourceRef]] = None
        for value, source in candidates:
            if winner is None:
                if not is_empty(value):
                    winner = (value, source)
                continue
            if self.prefer_incoming(field_path, winner[0], winner[1], value, source):
                winner = (value, source)
        return winner
