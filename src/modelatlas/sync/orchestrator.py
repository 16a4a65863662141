"""
Concurrent fan-out of (provider, source) fetch targets.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence

from modelatlas.catalog.models import Model, Provider
from modelatlas.context import RunContext
from modelatlas.errors import FetchError, SyncCancelledError
from modelatlas.merge.authority import SourceRef, SourceType
from modelatlas.settings import settings
from modelatlas.sources.base import SourceConfig
from modelatlas.sources.registry import SourceRegistry

logger = logging.getLogger(__name__)


class FetchStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


@dataclass
class FetchTarget:
    """
    One (provider, source) pair to fetch, with its run configuration.
    """

    provider_id: str
    source_type: SourceType
    order: int
    config: SourceConfig


@dataclass
class FetchOutcome:
    """
    Result of one fetch target.
    """

    provider_id: str
    source_type: SourceType
    source_name: str
    priority: int
    order: int
    status: FetchStatus
    models: List[Model] = field(default_factory=list)
    provider: Optional[Provider] = None
    error: Optional[BaseException] = None
    duration: float = 0.0

    @property
    def ref(self) -> SourceRef:
        return SourceRef(
            source_type=self.source_type, priority=self.priority, order=self.order
        )

    @property
    def succeeded(self) -> bool:
        return self.status is FetchStatus.SUCCESS


class FetchOrchestrator:
    """
    Runs every target on a thread pool and collects one outcome per target.

    A failing target never affects its siblings. The barrier polls the run
    context so cancellation is noticed within ``poll_interval``; running
    tasks then get at most ``grace_period`` to finish.

    A task still running after the grace period is abandoned: it is reported
    CANCELLED and logged, and its worker thread finishes in the background
    after ``run`` returns. It only holds its own cloned source and its result
    is discarded.
    """

    def __init__(
        self,
        registry: SourceRegistry,
        max_workers: Optional[int] = None,
        poll_interval: Optional[float] = None,
        grace_period: Optional[float] = None,
    ):
        self.registry = registry
        self.max_workers = max_workers or settings.max_workers
        self.poll_interval = poll_interval or settings.poll_interval
        self.grace_period = (
            grace_period if grace_period is not None else settings.cancel_grace_period
        )
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    def run(self, ctx: RunContext, targets: Sequence[FetchTarget]) -> List[FetchOutcome]:
        """
        Fetch all ``targets`` and return outcomes sorted by provider ID, then
        registry order.
        """
        if not targets:
            return []

        self.logger.info(
            f"Fetching {len(targets)} targets with up to {self.max_workers} workers"
        )
        outcomes: Dict[int, FetchOutcome] = {}
        executor = ThreadPoolExecutor(
            max_workers=min(self.max_workers, len(targets)),
            thread_name_prefix="modelatlas-fetch",
        )
        try:
            futures: Dict[Future, int] = {
                executor.submit(self._run_target, ctx, target): index
                for index, target in enumerate(targets)
            }
            pending = set(futures)
            while pending and not ctx.cancelled():
                done, pending = wait(
                    pending, timeout=self.poll_interval, return_when=FIRST_COMPLETED
                )
                for future in done:
                    index = futures[future]
                    outcomes[index] = self._collect(future, targets[index])

            if pending:
                self.logger.warning(
                    f"Run cancelled with {len(pending)} targets outstanding"
                )
                for future in pending:
                    future.cancel()
                done, pending = wait(pending, timeout=self.grace_period)
                for future in done:
                    index = futures[future]
                    outcomes[index] = self._collect(future, targets[index])
                abandoned = []
                for future in pending:
                    index = futures[future]
                    outcomes[index] = self._cancelled(
                        targets[index], "did not stop within the grace period"
                    )
                    abandoned.append(
                        f"{targets[index].provider_id} [{targets[index].source_type}]"
                    )
                if abandoned:
                    self.logger.warning(
                        f"Abandoning {len(abandoned)} targets still running after "
                        f"{self.grace_period}s: {', '.join(sorted(abandoned))}"
                    )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        ordered = sorted(
            outcomes.values(), key=lambda o: (o.provider_id, o.order, o.source_type.value)
        )
        self._log_summary(ordered)
        return ordered

    def _collect(self, future: Future, target: FetchTarget) -> FetchOutcome:
        if future.cancelled():
            return self._cancelled(target, "cancelled before start")
        try:
            return future.result()
        except Exception as e:
            # source errors never get here; _run_target turns them into outcomes
            self.logger.error(f"Fetch task for {target.provider_id} crashed: {e}")
            return self._outcome(
                target,
                FetchStatus.FAILED,
                error=FetchError(target.provider_id, str(target.source_type), e),
            )

    def _run_target(self, ctx: RunContext, target: FetchTarget) -> FetchOutcome:
        start = time.monotonic()
        if ctx.cancelled():
            return self._cancelled(target, "cancelled before start")

        source = self.registry.get(target.source_type).clone()
        label = f"{target.provider_id} [{source.name}]"
        try:
            source.configure(target.config)
            if not source.is_available():
                self.logger.debug(f"{label}: source unavailable, skipping")
                return self._outcome(
                    target, FetchStatus.SKIPPED, source=source, start=start
                )
            models = source.fetch(ctx, target.provider_id)
            provider = source.fetch_provider_metadata(ctx, target.provider_id)
        except SyncCancelledError as e:
            self.logger.debug(f"{label}: {e}")
            return self._outcome(
                target, FetchStatus.CANCELLED, source=source, error=e, start=start
            )
        except Exception as e:
            if ctx.cancelled():
                # any failure once the run is cancelled counts as cancellation
                cancelled = SyncCancelledError(f"interrupted by cancellation: {e}")
                cancelled.__cause__ = e
                self.logger.debug(f"{label}: {cancelled}")
                return self._outcome(
                    target,
                    FetchStatus.CANCELLED,
                    source=source,
                    error=cancelled,
                    start=start,
                )
            error = FetchError(target.provider_id, source.name, e)
            self.logger.error(f"Failed to fetch {label}: {e}")
            return self._outcome(
                target, FetchStatus.FAILED, source=source, error=error, start=start
            )
        finally:
            source.reset()

        self.logger.debug(f"{label}: fetched {len(models)} models")
        return self._outcome(
            target,
            FetchStatus.SUCCESS,
            source=source,
            models=models,
            provider=provider,
            start=start,
        )

    def _outcome(
        self,
        target: FetchTarget,
        status: FetchStatus,
        source=None,
        models: Optional[List[Model]] = None,
        provider: Optional[Provider] = None,
        error: Optional[BaseException] = None,
        start: Optional[float] = None,
    ) -> FetchOutcome:
        if source is None and target.source_type in self.registry:
            source = self.registry.get(target.source_type)
        return FetchOutcome(
            provider_id=target.provider_id,
            source_type=target.source_type,
            source_name=source.name if source is not None else str(target.source_type),
            priority=source.priority if source is not None else 0,
            order=target.order,
            status=status,
            models=models or [],
            provider=provider,
            error=error,
            duration=time.monotonic() - start if start is not None else 0.0,
        )

    def _cancelled(self, target: FetchTarget, reason: str) -> FetchOutcome:
        return self._outcome(
            target, FetchStatus.CANCELLED, error=SyncCancelledError(reason)
        )

    def _log_summary(self, outcomes: Sequence[FetchOutcome]) -> None:
        counts: Dict[FetchStatus, int] = {}
        for outcome in outcomes:
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        summary = ", ".join(f"{status}={count}" for status, count in sorted(counts.items()))
        self.logger.info(f"Completed {len(outcomes)} fetch targets ({summary})")
