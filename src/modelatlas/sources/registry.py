"""
Registry of sources keyed by source type.
"""

import logging
import threading
from typing import Dict, List, Optional

from modelatlas.catalog.catalog import Catalog
from modelatlas.errors import NotFoundError
from modelatlas.merge.authority import SourceType

from .base import BaseSource
from .clients.registry import ClientRegistry, default_client_registry, register_client
from .local import LocalCatalogSource
from .provider_api import ProviderAPISource

logger = logging.getLogger(__name__)

__all__ = [
    "ClientRegistry",
    "SourceRegistry",
    "build_default_registry",
    "default_client_registry",
    "register_client",
]


class SourceRegistry:
    """
    Source type -> registered source, enumerated in registration order.

    Re-registering a type replaces the source but keeps its position.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._sources: Dict[SourceType, BaseSource] = {}

    def register(self, source: BaseSource) -> None:
        if not isinstance(source, BaseSource):
            raise ValueError(f"Source must inherit from BaseSource: {source!r}")
        with self._lock:
            updated = dict(self._sources)
            replaced = source.source_type in updated
            updated[source.source_type] = source
            self._sources = updated
        action = "Replaced" if replaced else "Registered"
        logger.debug(f"{action} source: {source.source_type} -> {source}")

    def unregister(self, source_type: SourceType) -> None:
        with self._lock:
            if source_type in self._sources:
                updated = dict(self._sources)
                del updated[source_type]
                self._sources = updated
                logger.debug(f"Unregistered source: {source_type}")

    def list(self) -> List[SourceType]:
        return list(self._sources)

    def get(self, source_type: SourceType) -> BaseSource:
        sources = self._sources
        if source_type not in sources:
            raise NotFoundError(
                "source", str(source_type), [str(t) for t in sources]
            )
        return sources[source_type]

    def sources(self) -> List[BaseSource]:
        return list(self._sources.values())

    def order(self, source_type: SourceType) -> int:
        """
        Enumeration index of ``source_type``, used to break priority ties.
        """
        try:
            return self.list().index(source_type)
        except ValueError:
            raise NotFoundError(
                "source", str(source_type), [str(t) for t in self._sources]
            ) from None

    def __contains__(self, source_type: object) -> bool:
        return source_type in self._sources

    def __len__(self) -> int:
        return len(self._sources)


def build_default_registry(
    local_catalog: Optional[Catalog] = None,
    client_registry: Optional[ClientRegistry] = None,
) -> SourceRegistry:
    """
    Registry holding the local catalog source and the provider API source.
    """
    registry = SourceRegistry()
    registry.register(LocalCatalogSource(catalog=local_catalog))
    registry.register(ProviderAPISource(client_registry=client_registry))
    return registry
