"""
Abstract base class for provider API clients.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

import requests

from modelatlas.catalog.models import Model, Provider
from modelatlas.context import RunContext
from modelatlas.errors import ConfigurationError, SyncCancelledError
from modelatlas.settings import settings

# requests treats a zero timeout as invalid
MIN_REQUEST_TIMEOUT = 0.001


class BaseClient(ABC):
    """
    Lists a provider's models over HTTP. One ``requests.Session`` per client,
    no retries.
    """

    default_base_url: Optional[str] = None
    default_auth_header: str = "Authorization"
    default_auth_scheme: Optional[str] = "Bearer"

    def __init__(
        self,
        provider: Provider,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.provider = provider
        base_url = provider.base_url or self.resolve_default_base_url(provider.id)
        if not base_url:
            raise ConfigurationError(provider.id, "no base_url configured for client")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(
            f"{self.__class__.__module__}.{self.__class__.__name__}"
        )

    def resolve_default_base_url(self, provider_id: str) -> Optional[str]:
        return self.default_base_url

    def auth_headers(self) -> Dict[str, str]:
        key = self.provider.api_key_value
        if not key:
            return {}
        declared = self.provider.api_key
        header = (declared.header if declared else None) or self.default_auth_header
        scheme = self.default_auth_scheme
        if declared is not None and declared.scheme is not None:
            scheme = declared.scheme
        return {header: f"{scheme} {key}" if scheme else key}

    def headers(self) -> Dict[str, str]:
        return {"Accept": "application/json", **self.auth_headers()}

    def get_json(
        self,
        ctx: RunContext,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        GET ``base_url/path`` and decode the JSON body.

        The request timeout never exceeds the time left in ``ctx``; a request
        that fails once ``ctx`` is cancelled raises ``SyncCancelledError``.
        """
        ctx.raise_if_cancelled()
        url = f"{self.base_url}/{path.lstrip('/')}"
        timeout = max(ctx.bounded_timeout(self.timeout), MIN_REQUEST_TIMEOUT)
        self.logger.debug(f"GET {url} (timeout={timeout:.2f}s)")
        try:
            response = self.session.get(
                url, headers=self.headers(), params=params, timeout=timeout
            )
        except requests.exceptions.RequestException as e:
            if ctx.cancelled():
                raise SyncCancelledError(f"request to {url} interrupted: {e}") from e
            raise
        ctx.raise_if_cancelled()
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise ValueError(f"Invalid JSON returned by {url}") from e

    @abstractmethod
    def list_models(self, ctx: RunContext) -> List[Model]:
        pass

    def close(self) -> None:
        self.session.close()

    def __str__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider.id})"
