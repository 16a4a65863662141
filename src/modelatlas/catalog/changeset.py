"""
Per-provider differences between an existing catalog and a synchronized one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from modelatlas.merge.authority import SourceRef, SourceType
from modelatlas.merge.strategies import record_fields

from .catalog import Catalog
from .models import Model


@dataclass
class FieldChange:
    """
    One leaf field that differs; ``old`` or ``new`` is None when the field
    was added or cleared.
    """

    path: str
    old: Any = None
    new: Any = None
    source: Optional[SourceType] = None

    def __str__(self) -> str:
        return f"{self.path}: {self.old!r} -> {self.new!r}"


@dataclass
class ModelUpdate:
    model_id: str
    existing: Model
    new: Model
    changes: List[FieldChange] = field(default_factory=list)


@dataclass
class ProviderChangeset:
    """
    Models added, updated and removed for one provider, each sorted by ID.
    """

    provider_id: str
    added: List[Model] = field(default_factory=list)
    updated: List[ModelUpdate] = field(default_factory=list)
    removed: List[Model] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.updated or self.removed)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.updated) + len(self.removed)

    def __str__(self) -> str:
        if not self.has_changes:
            return "no changes"
        return (
            f"{len(self.added)} added, {len(self.updated)} updated, "
            f"{len(self.removed)} removed"
        )


def compare_models(
    existing: Model,
    new: Model,
    provenance: Optional[Mapping[str, SourceRef]] = None,
) -> List[FieldChange]:
    """
    Field-level differences between two versions of a model, sorted by path.

    ``provenance`` maps field paths of ``new`` to the source that supplied
    them and fills ``FieldChange.source``.
    """
    provenance = provenance or {}
    before = record_fields(existing)
    after = record_fields(new)
    changes = []
    for path in sorted(set(before) | set(after)):
        old, value = before.get(path), after.get(path)
        if old == value:
            continue
        ref = provenance.get(path)
        changes.append(
            FieldChange(
                path=path,
                old=old,
                new=value,
                source=ref.source_type if ref is not None else None,
            )
        )
    return changes


def compare_provider_models(
    provider_id: str,
    existing: Iterable[Model],
    new: Iterable[Model],
    provenance: Optional[Mapping[str, Mapping[str, SourceRef]]] = None,
) -> ProviderChangeset:
    """
    Compare a provider's existing models with newly synchronized ones.

    Args:
        provider_id: Provider the models belong to
        existing: Models currently in the catalog
        new: Models produced by the synchronization
        provenance: Per-model field provenance of ``new``, keyed by model ID

    Returns:
        ProviderChangeset with added, updated and removed models
    """
    provenance = provenance or {}
    before = {m.id: m for m in existing}
    after = {m.id: m for m in new}
    changeset = ProviderChangeset(provider_id)
    for model_id in sorted(after):
        model = after[model_id]
        if model_id not in before:
            changeset.added.append(model)
            continue
        changes = compare_models(before[model_id], model, provenance.get(model_id))
        if changes:
            changeset.updated.append(
                ModelUpdate(model_id, before[model_id], model, changes)
            )
    changeset.removed = [before[m] for m in sorted(before) if m not in after]
    return changeset


def compare_catalogs(
    existing: Optional[Catalog],
    new: Catalog,
    provider_ids: Iterable[str],
    fresh: bool = False,
) -> Dict[str, ProviderChangeset]:
    """
    Changesets for ``provider_ids``, comparing ``new`` against ``existing``.

    With ``fresh`` (or no existing catalog) every model of ``new`` counts as
    added and nothing is removed.
    """
    changesets: Dict[str, ProviderChangeset] = {}
    for provider_id in sorted(provider_ids):
        models = new.models(provider_id)
        if fresh or existing is None:
            changesets[provider_id] = ProviderChangeset(
                provider_id, added=sorted(models, key=lambda m: m.id)
            )
            continue
        provenance = {m.id: new.provenance(provider_id, m.id) for m in models}
        changesets[provider_id] = compare_provider_models(
            provider_id, existing.models(provider_id), models, provenance
        )
    return changesets
