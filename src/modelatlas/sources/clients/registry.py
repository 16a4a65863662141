"""
Registry mapping provider IDs to client constructors.
"""

import logging
import threading
from typing import Callable, Dict, List, Optional

from modelatlas.catalog.models import Provider
from modelatlas.errors import NotFoundError

from .base import BaseClient

logger = logging.getLogger(__name__)

ClientConstructor = Callable[..., BaseClient]


class ClientRegistry:
    """
    Provider ID -> client constructor. Writes are locked, reads use the
    current snapshot.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._constructors: Dict[str, ClientConstructor] = {}

    def register(self, provider_id: str, constructor: ClientConstructor) -> None:
        if not callable(constructor):
            raise ValueError(f"Client constructor must be callable: {constructor!r}")
        with self._lock:
            updated = dict(self._constructors)
            updated[provider_id] = constructor
            self._constructors = updated
        logger.debug(f"Registered client: {provider_id} -> {constructor!r}")

    def unregister(self, provider_id: str) -> None:
        with self._lock:
            if provider_id in self._constructors:
                updated = dict(self._constructors)
                del updated[provider_id]
                self._constructors = updated
                logger.debug(f"Unregistered client: {provider_id}")

    def get(self, provider_id: str) -> ClientConstructor:
        constructors = self._constructors
        if provider_id not in constructors:
            raise NotFoundError("client", provider_id, sorted(constructors))
        return constructors[provider_id]

    def has(self, provider_id: str) -> bool:
        return provider_id in self._constructors

    def list(self) -> List[str]:
        return sorted(self._constructors)

    def create(self, provider: Provider, timeout: Optional[float] = None) -> BaseClient:
        """
        Build the client registered for ``provider.id``.
        """
        return self.get(provider.id)(provider, timeout=timeout)

    def __len__(self) -> int:
        return len(self._constructors)


default_client_registry = ClientRegistry()


def register_client(*provider_ids: str, registry: Optional[ClientRegistry] = None):
    """
    Class decorator registering a client for one or more provider IDs.

    Example:
        @register_client("openai", "groq")
        class OpenAICompatibleClient(BaseClient): ...
    """
    target = registry if registry is not None else default_client_registry

    def decorator(constructor: ClientConstructor) -> ClientConstructor:
        for provider_id in provider_ids:
            target.register(provider_id, constructor)
        return constructor

    return decorator
