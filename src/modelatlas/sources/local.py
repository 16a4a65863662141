"""
Source backed by an already-loaded local catalog.
"""

from typing import List, Optional, Sequence

from modelatlas.catalog.catalog import Catalog
from modelatlas.catalog.models import Model, Provider
from modelatlas.context import RunContext
from modelatlas.merge.authority import FieldAuthority, SourceType

from .base import BaseSource, SourceConfig


class LocalCatalogSource(BaseSource):
    """
    Curated catalog kept on disk, authoritative for descriptive fields.
    """

    source_type = SourceType.LOCAL_CATALOG
    default_name = "Local Catalog"
    default_priority = 80

    def __init__(
        self,
        catalog: Optional[Catalog] = None,
        name: Optional[str] = None,
        priority: Optional[int] = None,
        authorities: Optional[Sequence[FieldAuthority]] = None,
    ):
        super().__init__(name=name, priority=priority, authorities=authorities)
        self._default_catalog = catalog
        self._catalog: Optional[Catalog] = None

    def configure(self, config: SourceConfig) -> None:
        if not config.enabled:
            self.logger.debug(f"{self.name} disabled for this run")
            self._catalog = None
            return
        self._catalog = (
            config.local_catalog
            if config.local_catalog is not None
            else self._default_catalog
        )
        if self._catalog is None:
            self.logger.debug(f"{self.name} has no catalog loaded")

    def is_available(self) -> bool:
        return self._catalog is not None

    def fetch(self, ctx: RunContext, provider_id: str) -> List[Model]:
        ctx.raise_if_cancelled()
        if self._catalog is None:
            return []
        return [m.model_copy(deep=True) for m in self._catalog.models(provider_id)]

    def fetch_provider_metadata(
        self, ctx: RunContext, provider_id: str
    ) -> Optional[Provider]:
        if self._catalog is None:
            return None
        provider = self._catalog.provider(provider_id)
        return provider.model_copy(deep=True) if provider is not None else None

    def reset(self) -> None:
        self._catalog = None

    def clone(self) -> "LocalCatalogSource":
        return LocalCatalogSource(
            catalog=self._default_catalog,
            name=self.name,
            priority=self._priority,
            authorities=self._authorities,
        )
