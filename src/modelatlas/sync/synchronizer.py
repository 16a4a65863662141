"""
Synchronization entry point: plan targets, fan out, build the catalog.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from modelatlas.catalog.catalog import Catalog
from modelatlas.catalog.changeset import ProviderChangeset, compare_catalogs
from modelatlas.catalog.models import Provider
from modelatlas.context import RunContext
from modelatlas.errors import (
    MergeError,
    ProviderNotFoundError,
    ProviderSyncError,
    SyncCancelledError,
    SyncError,
)
from modelatlas.merge.authority import SourceRef, SourceType
from modelatlas.merge.strategies import MergeStrategy
from modelatlas.settings import Settings
from modelatlas.settings import settings as default_settings
from modelatlas.sources.base import SourceConfig
from modelatlas.sources.registry import SourceRegistry, build_default_registry

from .builder import CatalogBuilder
from .options import SyncOptions
from .orchestrator import FetchOrchestrator, FetchOutcome, FetchStatus, FetchTarget

logger = logging.getLogger(__name__)


@dataclass
class SourceStats:
    """
    Per-source counters for one run.
    """

    source_type: SourceType
    name: str
    targets: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: int = 0
    models: int = 0
    providers: int = 0
    errors: List[BaseException] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.targets > self.skipped

    def record(self, outcome: FetchOutcome) -> None:
        self.targets += 1
        if outcome.status is FetchStatus.SUCCESS:
            self.succeeded += 1
            self.models += len(outcome.models)
            if outcome.provider is not None:
                self.providers += 1
        elif outcome.status is FetchStatus.FAILED:
            self.failed += 1
        elif outcome.status is FetchStatus.SKIPPED:
            self.skipped += 1
        else:
            self.cancelled += 1
        if outcome.status is FetchStatus.FAILED and outcome.error is not None:
            self.errors.append(outcome.error)


@dataclass
class SyncResult:
    """
    Catalog plus everything that went wrong while building it.
    """

    catalog: Catalog
    error: Optional[SyncError] = None
    outcomes: List[FetchOutcome] = field(default_factory=list)
    merge_errors: List[MergeError] = field(default_factory=list)
    cancelled: bool = False
    stats: Dict[SourceType, SourceStats] = field(default_factory=dict)
    changesets: Dict[str, ProviderChangeset] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.error is None and not self.merge_errors

    def raise_for_errors(self) -> None:
        if self.error is not None:
            raise self.error

    def outcomes_for(self, provider_id: str) -> List[FetchOutcome]:
        return [o for o in self.outcomes if o.provider_id == provider_id]

    @property
    def has_changes(self) -> bool:
        return any(c.has_changes for c in self.changesets.values())

    @property
    def total_changes(self) -> int:
        return sum(c.total for c in self.changesets.values())

    def summary(self) -> str:
        lines = [
            f"{len(self.catalog.provider_ids())} providers, {len(self.catalog)} models"
        ]
        for stats in self.stats.values():
            lines.append(
                f"{stats.name}: {stats.succeeded} ok, {stats.failed} failed, "
                f"{stats.skipped} skipped, {stats.cancelled} cancelled, "
                f"{stats.models} models"
            )
        changed = [c for c in self.changesets.values() if c.has_changes]
        if changed:
            lines.append(
                f"{len(changed)} providers changed, {self.total_changes} model changes"
            )
            for changeset in changed:
                lines.append(f"  {changeset.provider_id}: {changeset}")
        elif self.changesets:
            lines.append("no changes")
        if self.merge_errors:
            lines.append(f"{len(self.merge_errors)} merge errors")
        if self.cancelled:
            lines.append("run was cancelled; results are partial")
        return "\n".join(lines)


class Synchronizer:
    """
    Builds one catalog from every applicable (provider, source) pair.

    Example:
        >>> sync = Synchronizer(local_catalog=load_catalog("catalog.yaml"))
        >>> result = sync.synchronize(options=SyncOptions(provider_id="openai"))
        >>> result.catalog.models("openai")
    """

    def __init__(
        self,
        registry: Optional[SourceRegistry] = None,
        local_catalog: Optional[Catalog] = None,
        providers: Optional[Sequence[Provider]] = None,
        settings: Optional[Settings] = None,
        environ: Optional[Mapping[str, str]] = None,
        orchestrator: Optional[FetchOrchestrator] = None,
    ):
        self.settings = settings or default_settings
        self.local_catalog = local_catalog
        self.registry = (
            registry if registry is not None else build_default_registry(local_catalog)
        )
        self.extra_providers = list(providers or [])
        self.environ = environ if environ is not None else os.environ
        self.orchestrator = orchestrator or FetchOrchestrator(
            self.registry,
            max_workers=self.settings.max_workers,
            poll_interval=self.settings.poll_interval,
            grace_period=self.settings.cancel_grace_period,
        )
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    def known_providers(self) -> Dict[str, Provider]:
        """
        Providers from the local catalog, overlaid by explicitly passed ones.
        """
        known: Dict[str, Provider] = {}
        if self.local_catalog is not None:
            for provider in self.local_catalog.providers():
                known[provider.id] = provider
        for provider in self.extra_providers:
            known[provider.id] = provider
        return dict(sorted(known.items()))

    def synchronize(
        self, ctx: Optional[RunContext] = None, options: Optional[SyncOptions] = None
    ) -> SyncResult:
        """
        Run one synchronization.

        Raises:
            ProviderNotFoundError: ``options.provider_id`` names an unknown provider.
            SyncCancelledError: the run was cancelled and ``options.strict`` is set.
        """
        options = options or SyncOptions()
        ctx = ctx or RunContext()
        if options.timeout is not None:
            ctx = ctx.with_timeout(options.timeout)

        known = self.known_providers()
        if options.provider_id is not None:
            if options.provider_id not in known:
                raise ProviderNotFoundError(options.provider_id, list(known))
            targets_for = [known[options.provider_id]]
        else:
            targets_for = list(known.values())

        strategy = options.merge_strategy or MergeStrategy(
            self.settings.default_merge_strategy
        )
        self.logger.info(
            f"Synchronizing {len(targets_for)} providers "
            f"across {len(self.registry)} sources (strategy={strategy})"
        )

        # invalid custom authorities fail here, before anything is fetched
        builder = CatalogBuilder(
            merge_strategy=strategy,
            custom_field_authorities=options.custom_field_authorities,
            seed=self._seed(options),
        )

        targets = self._plan(targets_for, options)
        outcomes = self.orchestrator.run(ctx, targets)
        catalog, merge_errors = builder.build(outcomes)

        cancelled = any(o.status is FetchStatus.CANCELLED for o in outcomes)
        if cancelled and options.strict:
            raise SyncCancelledError()

        errors: List[BaseException] = self._provider_errors(outcomes)
        if cancelled:
            errors.append(SyncCancelledError())
        error = SyncError(errors) if errors else None
        if error is not None:
            self.logger.warning(str(error))

        result = SyncResult(
            catalog=catalog,
            error=error,
            outcomes=outcomes,
            merge_errors=merge_errors,
            cancelled=cancelled,
            stats=self._stats(outcomes),
            changesets=self._changesets(catalog, outcomes, options),
        )
        self.logger.info(f"Synchronization finished: {len(catalog)} models")
        return result

    def _source_enabled(self, source_type: SourceType, options: SyncOptions) -> bool:
        if source_type == SourceType.LOCAL_CATALOG:
            return not (options.disable_local_catalog or options.seed_from_local)
        if source_type == SourceType.PROVIDER_API:
            return not options.disable_provider_api
        return True

    def _plan(
        self, providers: Sequence[Provider], options: SyncOptions
    ) -> List[FetchTarget]:
        targets = []
        source_types = self.registry.list()
        for provider in providers:
            loaded = provider.with_credentials(self.environ)
            for order, source_type in enumerate(source_types):
                config = SourceConfig(
                    provider=loaded,
                    local_catalog=self.local_catalog,
                    enabled=self._source_enabled(source_type, options),
                    request_timeout=self.settings.request_timeout,
                )
                targets.append(FetchTarget(provider.id, source_type, order, config))
        return targets

    def _seed(self, options: SyncOptions) -> Optional[Catalog]:
        if not options.seed_from_local or self.local_catalog is None:
            return None
        if SourceType.LOCAL_CATALOG in self.registry:
            source = self.registry.get(SourceType.LOCAL_CATALOG)
            ref = source.ref(self.registry.order(SourceType.LOCAL_CATALOG))
        else:
            ref = SourceRef(SourceType.LOCAL_CATALOG)

        def wanted(provider_id: str) -> bool:
            return options.provider_id is None or provider_id == options.provider_id

        # seeded values carry local catalog provenance
        seed = Catalog(self.local_catalog.merge_strategy)
        for provider in self.local_catalog.providers():
            if wanted(provider.id):
                seed.set_provider(provider, source=ref)
        for provider_id, model in self.local_catalog.list_models():
            if wanted(provider_id):
                seed.set_model(provider_id, model, source=ref)
        return seed

    def _changesets(
        self, catalog: Catalog, outcomes: Sequence[FetchOutcome], options: SyncOptions
    ) -> Dict[str, ProviderChangeset]:
        """
        Compare the built catalog with the local one, per synchronized provider.

        Only providers with at least one successful fetch and no failed or
        cancelled one get a changeset; for the others, models missing from
        the result would show up as removals.
        """
        fetched = {o.provider_id for o in outcomes if o.succeeded}
        incomplete = {
            o.provider_id
            for o in outcomes
            if o.status in (FetchStatus.FAILED, FetchStatus.CANCELLED)
        }
        complete = sorted(fetched - incomplete)
        return compare_catalogs(
            self.local_catalog, catalog, complete, fresh=options.fresh
        )

    @staticmethod
    def _provider_errors(outcomes: Sequence[FetchOutcome]) -> List[BaseException]:
        by_provider: Dict[str, List[BaseException]] = {}
        for outcome in outcomes:
            if outcome.status is FetchStatus.FAILED and outcome.error is not None:
                by_provider.setdefault(outcome.provider_id, []).append(outcome.error)
        return [
            ProviderSyncError(provider_id, by_provider[provider_id])
            for provider_id in sorted(by_provider)
        ]

    def _stats(self, outcomes: Sequence[FetchOutcome]) -> Dict[SourceType, SourceStats]:
        stats: Dict[SourceType, SourceStats] = {}
        for source_type in self.registry.list():
            source = self.registry.get(source_type)
            stats[source_type] = SourceStats(source_type=source_type, name=source.name)
        for outcome in outcomes:
            entry = stats.setdefault(
                outcome.source_type,
                SourceStats(source_type=outcome.source_type, name=outcome.source_name),
            )
            entry.record(outcome)
        return stats
