"""
Model sources, the source registry and provider API clients.
"""

from modelatlas.merge.authority import SourceType

from .base import BaseSource, SourceConfig
from .clients import (
    AnthropicClient,
    BaseClient,
    ClientRegistry,
    OpenAICompatibleClient,
    default_client_registry,
    register_client,
)
from .local import LocalCatalogSource
from .provider_api import ProviderAPISource
from .registry import SourceRegistry, build_default_registry

__all__ = [
    "AnthropicClient",
    "BaseClient",
    "BaseSource",
    "ClientRegistry",
    "LocalCatalogSource",
    "OpenAICompatibleClient",
    "ProviderAPISource",
    "SourceConfig",
    "SourceRegistry",
    "SourceType",
    "build_default_registry",
    "default_client_registry",
    "register_client",
]
