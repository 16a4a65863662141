"""
In-memory catalog of providers and their models.

Every write of an existing ID goes through the catalog's merge strategy, so a
catalog never holds two records with the same ID inside one provider.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from modelatlas.errors import ConfigurationError, MergeError
from modelatlas.merge.authority import UNKNOWN_SOURCE, AuthorityResolver, SourceRef, is_empty
from modelatlas.merge.strategies import (
    MergeStrategy,
    Provenance,
    merge_records,
    uniform_provenance,
)

from .models import Model, Provider

logger = logging.getLogger(__name__)


def _prune(value: Any) -> Any:
    """
    Drop empty values recursively so dumps only carry known data.
    """
    if isinstance(value, dict):
        pruned = {k: _prune(v) for k, v in value.items()}
        return {k: v for k, v in pruned.items() if not is_empty(v)}
    if isinstance(value, list):
        return [_prune(v) for v in value]
    return value


class Catalog:
    """
    Mapping of provider ID to model ID to ``Model``, plus provider records and
    per-field provenance.
    """

    def __init__(
        self,
        merge_strategy: MergeStrategy = MergeStrategy.AUTHORITY,
        model_resolver: Optional[AuthorityResolver] = None,
        provider_resolver: Optional[AuthorityResolver] = None,
    ):
        self._merge_strategy = MergeStrategy(merge_strategy)
        self.model_resolver = model_resolver or AuthorityResolver.for_models()
        self.provider_resolver = provider_resolver or AuthorityResolver.for_providers()
        self._providers: Dict[str, Provider] = {}
        self._provider_provenance: Dict[str, Provenance] = {}
        self._models: Dict[str, Dict[str, Model]] = {}
        self._model_provenance: Dict[str, Dict[str, Provenance]] = {}

    @property
    def merge_strategy(self) -> MergeStrategy:
        return self._merge_strategy

    def set_merge_strategy(self, strategy: MergeStrategy) -> None:
        self._merge_strategy = MergeStrategy(strategy)

    # Providers

    def providers(self) -> List[Provider]:
        return [self._providers[pid] for pid in sorted(self._providers)]

    def provider_ids(self) -> List[str]:
        """
        IDs of every provider that has a record or at least one model.
        """
        return sorted(set(self._providers) | set(self._models))

    def provider(self, provider_id: str) -> Optional[Provider]:
        return self._providers.get(provider_id)

    def set_provider(
        self,
        provider: Provider,
        source: Optional[SourceRef] = None,
        strategy: Optional[MergeStrategy] = None,
    ) -> Provider:
        """
        Insert ``provider`` or merge it into the existing record of that ID.
        """
        ref = source or UNKNOWN_SOURCE
        self._merge_provider(provider, uniform_provenance(provider, ref), strategy)
        return self._providers[provider.id]

    def _merge_provider(
        self,
        provider: Provider,
        provenance: Provenance,
        strategy: Optional[MergeStrategy],
    ) -> None:
        existing = self._providers.get(provider.id)
        if existing is None:
            self._providers[provider.id] = provider.model_copy(deep=True)
            self._provider_provenance[provider.id] = dict(provenance)
            return
        try:
            merged, merged_provenance = merge_records(
                existing,
                self._provider_provenance.get(provider.id, {}),
                provider,
                provenance,
                strategy or self._merge_strategy,
                self.provider_resolver,
            )
        except ValidationError as e:
            raise MergeError(provider.id, "-", "invalid merged provider record", e)
        # Runtime credentials are not part of the dump; keep whichever is loaded
        merged.api_key_value = provider.api_key_value or existing.api_key_value
        merged.env_values = {**existing.env_values, **provider.env_values}
        self._providers[provider.id] = merged
        self._provider_provenance[provider.id] = merged_provenance

    # Models

    def models(self, provider_id: str) -> List[Model]:
        """
        Models of ``provider_id`` sorted by ID; empty for unknown providers.
        """
        by_id = self._models.get(provider_id, {})
        return [by_id[mid] for mid in sorted(by_id)]

    def model(self, provider_id: str, model_id: str) -> Optional[Model]:
        return self._models.get(provider_id, {}).get(model_id)

    def list_models(self) -> List[Tuple[str, Model]]:
        """
        Every ``(provider_id, model)`` pair in deterministic order.
        """
        return [
            (provider_id, model)
            for provider_id in sorted(self._models)
            for model in self.models(provider_id)
        ]

    def provenance(self, provider_id: str, model_id: str) -> Dict[str, SourceRef]:
        """
        Which source supplied each field path of a model.
        """
        return dict(self._model_provenance.get(provider_id, {}).get(model_id, {}))

    def set_model(
        self,
        provider_id: str,
        model: Model,
        source: Optional[SourceRef] = None,
        strategy: Optional[MergeStrategy] = None,
    ) -> Model:
        """
        Insert ``model`` under ``provider_id`` or merge it into the existing
        record with the same ID.

        Raises:
            MergeError: the merged values do not form a valid model. The
                existing record is left unchanged.
        """
        ref = source or UNKNOWN_SOURCE
        self._merge_model(provider_id, model, uniform_provenance(model, ref), strategy)
        return self._models[provider_id][model.id]

    def _merge_model(
        self,
        provider_id: str,
        model: Model,
        provenance: Provenance,
        strategy: Optional[MergeStrategy],
    ) -> None:
        models = self._models.setdefault(provider_id, {})
        provenances = self._model_provenance.setdefault(provider_id, {})
        existing = models.get(model.id)
        if existing is None:
            models[model.id] = model.model_copy(deep=True)
            provenances[model.id] = dict(provenance)
            return
        try:
            merged, merged_provenance = merge_records(
                existing,
                provenances.get(model.id, {}),
                model,
                provenance,
                strategy or self._merge_strategy,
                self.model_resolver,
            )
        except ValidationError as e:
            raise MergeError(provider_id, model.id, "invalid merged model record", e)
        models[model.id] = merged
        provenances[model.id] = merged_provenance

    def remove_model(self, provider_id: str, model_id: str) -> bool:
        models = self._models.get(provider_id, {})
        if model_id not in models:
            return False
        del models[model_id]
        self._model_provenance.get(provider_id, {}).pop(model_id, None)
        return True

    # Whole-catalog operations

    def merge_with(
        self, other: "Catalog", strategy: Optional[MergeStrategy] = None
    ) -> List[MergeError]:
        """
        Merge every provider and model of ``other`` into this catalog, carrying
        over its field provenance.

        Per-model failures are collected and returned; the rest of ``other`` is
        still merged.
        """
        errors: List[MergeError] = []
        for provider in other.providers():
            try:
                self._merge_provider(
                    provider, other._provider_provenance.get(provider.id, {}), strategy
                )
            except MergeError as e:
                logger.warning(f"Skipping provider during catalog merge: {e}")
                errors.append(e)
        for provider_id, model in other.list_models():
            try:
                self._merge_model(
                    provider_id, model, other.provenance(provider_id, model.id), strategy
                )
            except MergeError as e:
                logger.warning(f"Skipping model during catalog merge: {e}")
                errors.append(e)
        return errors

    def copy(self, provider_ids: Optional[Iterable[str]] = None) -> "Catalog":
        """
        Independent deep copy, optionally restricted to ``provider_ids``.
        """
        keep = set(provider_ids) if provider_ids is not None else None
        clone = Catalog(self._merge_strategy, self.model_resolver, self.provider_resolver)
        for provider_id, provider in self._providers.items():
            if keep is None or provider_id in keep:
                clone._providers[provider_id] = provider.model_copy(deep=True)
                clone._provider_provenance[provider_id] = dict(
                    self._provider_provenance.get(provider_id, {})
                )
        for provider_id, models in self._models.items():
            if keep is not None and provider_id not in keep:
                continue
            clone._models[provider_id] = {
                mid: m.model_copy(deep=True) for mid, m in models.items()
            }
            clone._model_provenance[provider_id] = {
                mid: dict(p)
                for mid, p in self._model_provenance.get(provider_id, {}).items()
            }
        return clone

    def is_empty(self) -> bool:
        return not self._providers and not any(self._models.values())

    def __len__(self) -> int:
        return sum(len(models) for models in self._models.values())

    def __iter__(self) -> Iterator[Tuple[str, Model]]:
        return iter(self.list_models())

    def __repr__(self) -> str:
        return (
            f"Catalog(providers={len(self.provider_ids())}, models={len(self)}, "
            f"strategy={self._merge_strategy.value})"
        )

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        """
        Plain, JSON-compatible representation sorted by provider and model ID.
        """
        providers = []
        for provider_id in self.provider_ids():
            provider = self._providers.get(provider_id)
            entry = (
                provider.model_dump(mode="json", exclude_none=True)
                if provider is not None
                else {"id": provider_id}
            )
            entry = _prune(entry)
            models = [
                _prune(m.model_dump(mode="json", exclude_none=True))
                for m in self.models(provider_id)
            ]
            if models:
                entry["models"] = models
            providers.append(entry)
        return {"providers": providers}

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        merge_strategy: MergeStrategy = MergeStrategy.AUTHORITY,
        source: Optional[SourceRef] = None,
    ) -> "Catalog":
        """
        Build a catalog from the ``to_dict`` layout.

        Raises:
            ConfigurationError: the document is malformed.
        """
        catalog = cls(merge_strategy)
        if not data:
            return catalog
        entries = data.get("providers") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise ConfigurationError("catalog", "expected a 'providers' list")
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise ConfigurationError("catalog", f"provider #{index} is not a mapping")
            fields = {k: v for k, v in entry.items() if k != "models"}
            try:
                provider = Provider.model_validate(fields)
                models = [Model.model_validate(m) for m in entry.get("models") or []]
            except ValidationError as e:
                raise ConfigurationError(
                    "catalog", f"invalid entry for provider #{index}: {e}"
                ) from e
            catalog.set_provider(provider, source=source)
            for model in models:
                catalog.set_model(provider.id, model, source=source)
        return catalog
