"""
Exception hierarchy for catalog synchronization.

Provider-level failures are caught at the fetch task boundary and wrapped in
``FetchError``; the synchronizer groups them into one ``ProviderSyncError``
per failing provider inside an aggregate ``SyncError``.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Sequence


class ModelAtlasError(Exception):
    """
    Base class for all modelatlas errors.
    """

    pass


class ConfigurationError(ModelAtlasError):
    """
    Raised when a run or source configuration is malformed.
    """

    def __init__(self, component: str, message: str):
        self.component = component
        self.message = message
        super().__init__(f"{component}: {message}")


class NotFoundError(ModelAtlasError, KeyError):
    """
    Raised when a registry lookup does not match any entry.
    """

    def __init__(self, resource: str, key: str, available: Sequence[str] = ()):
        self.resource = resource
        self.key = key
        self.available = list(available)
        known = ", ".join(self.available) or "<none>"
        super().__init__(f"{resource} '{key}' not found. Known: {known}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the readable message instead
        return self.args[0]


class ProviderNotFoundError(NotFoundError):
    """
    Raised when an explicit provider filter names an unknown provider.
    """

    def __init__(self, provider_id: str, available: Sequence[str] = ()):
        super().__init__("provider", provider_id, available)
        self.provider_id = provider_id


class FetchError(ModelAtlasError):
    """
    A single (provider, source) fetch failed.
    """

    def __init__(self, provider_id: str, source: str, cause: BaseException):
        self.provider_id = provider_id
        self.source = source
        self.cause = cause
        super().__init__(f"{provider_id} [{source}]: {cause}")
        self.__cause__ = cause


class MergeError(ModelAtlasError):
    """
    A model's fields could not be reconciled into a valid record.
    """

    def __init__(
        self,
        provider_id: str,
        model_id: str,
        message: str,
        cause: Optional[BaseException] = None,
    ):
        self.provider_id = provider_id
        self.model_id = model_id
        self.message = message
        super().__init__(f"{provider_id}/{model_id}: {message}")
        if cause is not None:
            self.__cause__ = cause


class SyncCancelledError(ModelAtlasError):
    """
    The run context was cancelled or its deadline passed.
    """

    def __init__(self, message: str = "synchronization cancelled"):
        super().__init__(message)


class ProviderSyncError(ModelAtlasError):
    """
    All failures recorded for one provider during a run.
    """

    def __init__(self, provider_id: str, errors: Sequence[BaseException]):
        self.provider_id = provider_id
        self.errors: List[BaseException] = list(errors)
        causes = "; ".join(str(e) for e in self.errors)
        super().__init__(f"provider {provider_id} failed: {causes}")


class SyncError(ModelAtlasError):
    """
    Aggregate of the non-fatal failures of a synchronization run.

    Members are ``ProviderSyncError`` entries (one per failing provider,
    sorted by provider ID) optionally followed by a ``SyncCancelledError``.
    """

    def __init__(self, errors: Sequence[BaseException]):
        self.errors: List[BaseException] = list(errors)
        lines = "\n".join(f"  - {e}" for e in self.errors)
        super().__init__(f"{len(self.errors)} error(s) during sync:\n{lines}")

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    @property
    def providers(self) -> List[str]:
        """Provider IDs that reported at least one failure."""
        return [e.provider_id for e in self.errors if isinstance(e, ProviderSyncError)]

    @property
    def cancelled(self) -> bool:
        return any(isinstance(e, SyncCancelledError) for e in self.errors)

    def for_provider(self, provider_id: str) -> Optional[ProviderSyncError]:
        for error in self.errors:
            if isinstance(error, ProviderSyncError) and error.provider_id == provider_id:
                return error
        return None
