"""
Abstract base class for catalog sources.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field

from modelatlas.catalog.catalog import Catalog
from modelatlas.catalog.models import Model, Provider
from modelatlas.context import RunContext
from modelatlas.merge.authority import (
    DEFAULT_MODEL_FIELD_AUTHORITIES,
    FieldAuthority,
    SourceRef,
    SourceType,
    filter_authorities_by_source,
)

logger = logging.getLogger(__name__)


class SourceConfig(BaseModel):
    """
    Per-run configuration handed to ``BaseSource.configure``.
    """

    provider: Optional[Provider] = Field(
        None, description="Target provider with credentials already loaded"
    )
    local_catalog: Optional[Catalog] = Field(
        None, description="Already-loaded catalog used by the local source"
    )
    enabled: bool = Field(default=True, description="False when disabled by options")
    request_timeout: Optional[float] = Field(
        None, gt=0, description="Upper bound for a single provider request"
    )

    model_config = {"arbitrary_types_allowed": True}


class BaseSource(ABC):
    """
    A place models come from. Registered once, cloned and configured per
    (provider, source) fetch target.
    """

    source_type: SourceType
    default_name: str = "source"
    default_priority: int = 0

    def __init__(
        self,
        name: Optional[str] = None,
        priority: Optional[int] = None,
        authorities: Optional[Sequence[FieldAuthority]] = None,
    ):
        self.name = name or self.default_name
        self._priority = self.default_priority if priority is None else priority
        self._authorities = list(
            DEFAULT_MODEL_FIELD_AUTHORITIES if authorities is None else authorities
        )
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    @property
    def priority(self) -> int:
        return self._priority

    def set_priority(self, priority: int) -> None:
        self._priority = int(priority)

    def field_authorities(self) -> List[FieldAuthority]:
        """
        Declarations naming this source's type.
        """
        return filter_authorities_by_source(self._authorities, self.source_type)

    def ref(self, order: int = 0) -> SourceRef:
        return SourceRef(source_type=self.source_type, priority=self._priority, order=order)

    @abstractmethod
    def configure(self, config: SourceConfig) -> None:
        """
        Apply per-run configuration.

        An inapplicable source (disabled, missing credentials, no client)
        marks itself unavailable instead of raising. Malformed configuration
        may raise ``ConfigurationError``.
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def fetch(self, ctx: RunContext, provider_id: str) -> List[Model]:
        """
        Models of ``provider_id`` known to this source; empty when none.
        """
        pass

    @abstractmethod
    def fetch_provider_metadata(
        self, ctx: RunContext, provider_id: str
    ) -> Optional[Provider]:
        pass

    @abstractmethod
    def reset(self) -> None:
        """
        Drop the configuration applied by ``configure``.
        """
        pass

    @abstractmethod
    def clone(self) -> "BaseSource":
        """
        An unconfigured copy sharing no mutable state with this source.
        """
        pass

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name}, priority={self._priority})"
