"""
Provider API clients. Importing this package registers the shipped clients
on ``default_client_registry``.
"""

from .anthropic import AnthropicClient
from .base import BaseClient
from .openai_compatible import OpenAICompatibleClient
from .registry import (
    ClientRegistry,
    default_client_registry,
    register_client,
)

__all__ = [
    "AnthropicClient",
    "BaseClient",
    "ClientRegistry",
    "OpenAICompatibleClient",
    "default_client_registry",
    "register_client",
]
