"""
Folds fetch outcomes into a catalog.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from modelatlas.catalog.catalog import Catalog
from modelatlas.errors import MergeError
from modelatlas.merge.authority import AuthorityResolver, FieldAuthority
from modelatlas.merge.strategies import MergeStrategy

from .orchestrator import FetchOutcome


class CatalogBuilder:
    """
    Merges successful outcomes lowest priority first, so that ties between
    non-authoritative values go to the higher-priority source. The order
    depends only on priority and registry position, never on completion order.
    """

    def __init__(
        self,
        merge_strategy: MergeStrategy = MergeStrategy.AUTHORITY,
        custom_field_authorities: Optional[Sequence[FieldAuthority]] = None,
        seed: Optional[Catalog] = None,
    ):
        self.merge_strategy = MergeStrategy(merge_strategy)
        self.model_resolver = AuthorityResolver.for_models(custom_field_authorities)
        self.provider_resolver = AuthorityResolver.for_providers()
        self.seed = seed
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    def new_catalog(self) -> Catalog:
        if self.seed is None:
            return Catalog(
                self.merge_strategy, self.model_resolver, self.provider_resolver
            )
        catalog = self.seed.copy()
        catalog.set_merge_strategy(self.merge_strategy)
        catalog.model_resolver = self.model_resolver
        catalog.provider_resolver = self.provider_resolver
        return catalog

    def build(self, outcomes: Sequence[FetchOutcome]) -> Tuple[Catalog, List[MergeError]]:
        """
        Returns the catalog and the per-record merge failures.
        """
        catalog = self.new_catalog()
        errors: List[MergeError] = []
        successes = sorted(
            (o for o in outcomes if o.succeeded),
            key=lambda o: (o.priority, o.order, o.provider_id),
        )
        for outcome in successes:
            ref = outcome.ref
            if outcome.provider is not None:
                try:
                    catalog.set_provider(outcome.provider, source=ref)
                except MergeError as e:
                    self.logger.warning(f"Skipping provider metadata: {e}")
                    errors.append(e)
            for model in outcome.models:
                try:
                    catalog.set_model(outcome.provider_id, model, source=ref)
                except MergeError as e:
                    self.logger.warning(f"Skipping model: {e}")
                    errors.append(e)
            self.logger.debug(
                f"Merged {len(outcome.models)} models from "
                f"{outcome.provider_id} [{outcome.source_name}]"
            )

        self.logger.info(
            f"Built catalog with {len(catalog.provider_ids())} providers and "
            f"{len(catalog)} models ({len(errors)} merge errors)"
        )
        return catalog, errors
