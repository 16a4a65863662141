"""
Source querying a provider's live model listing through its client.
"""

from typing import List, Optional, Sequence

from modelatlas.catalog.models import Model, Provider
from modelatlas.context import RunContext
from modelatlas.errors import ConfigurationError
from modelatlas.merge.authority import FieldAuthority, SourceType

from .base import BaseSource, SourceConfig
from .clients import BaseClient, ClientRegistry, default_client_registry


class ProviderAPISource(BaseSource):
    """
    Live provider API, authoritative for availability and capability flags.
    """

    source_type = SourceType.PROVIDER_API
    default_name = "Provider API"
    default_priority = 90

    def __init__(
        self,
        client_registry: Optional[ClientRegistry] = None,
        name: Optional[str] = None,
        priority: Optional[int] = None,
        authorities: Optional[Sequence[FieldAuthority]] = None,
    ):
        super().__init__(name=name, priority=priority, authorities=authorities)
        self.client_registry = (
            client_registry if client_registry is not None else default_client_registry
        )
        self._provider: Optional[Provider] = None
        self._client: Optional[BaseClient] = None
        self._authors: List[str] = []

    def configure(self, config: SourceConfig) -> None:
        self.reset()
        provider = config.provider
        if not config.enabled or provider is None:
            self.logger.debug(f"{self.name} disabled for this run")
            return
        if not self.client_registry.has(provider.id):
            self.logger.debug(f"No client registered for provider {provider.id}")
            return
        missing = provider.missing_config_keys()
        if missing:
            self.logger.debug(
                f"Skipping {provider.id}: missing {', '.join(missing)}"
            )
            return
        try:
            client = self.client_registry.create(provider, timeout=config.request_timeout)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(provider.id, f"cannot create client: {e}") from e
        self._provider = provider
        self._client = client

    def is_available(self) -> bool:
        return self._client is not None

    def fetch(self, ctx: RunContext, provider_id: str) -> List[Model]:
        if self._client is None or self._provider is None:
            return []
        if provider_id != self._provider.id:
            raise ConfigurationError(
                self.name, f"configured for {self._provider.id}, asked for {provider_id}"
            )
        models = self._client.list_models(ctx)
        self._authors = sorted({a.id for m in models for a in m.authors})
        return models

    def fetch_provider_metadata(
        self, ctx: RunContext, provider_id: str
    ) -> Optional[Provider]:
        """
        Only what the API itself reveals: the provider ID and discovered authors.
        """
        if self._provider is None or provider_id != self._provider.id:
            return None
        return Provider(id=provider_id, authors=list(self._authors))

    def reset(self) -> None:
        if self._client is not None:
            self._client.close()
        self._provider = None
        self._client = None
        self._authors = []

    def clone(self) -> "ProviderAPISource":
        return ProviderAPISource(
            client_registry=self.client_registry,
            name=self.name,
            priority=self._priority,
            authorities=self._authorities,
        )
