"""
Client for the Anthropic ``GET /v1/models`` listing.
"""

from typing import Any, Dict, List

from modelatlas.catalog.models import Author, Model, ModelFeatures
from modelatlas.context import RunContext

from .base import BaseClient
from .registry import register_client

ANTHROPIC_VERSION = "2023-06-01"
PAGE_SIZE = 1000


@register_client("anthropic")
class AnthropicClient(BaseClient):
    """
    Pages through ``/models`` using ``has_more``/``last_id``.
    """

    default_base_url = "https://api.anthropic.com/v1"
    default_auth_header = "x-api-key"
    default_auth_scheme = None

    def headers(self) -> Dict[str, str]:
        headers = super().headers()
        headers["anthropic-version"] = ANTHROPIC_VERSION
        return headers

    def list_models(self, ctx: RunContext) -> List[Model]:
        models: List[Model] = []
        after_id = None
        while True:
            params: Dict[str, Any] = {"limit": PAGE_SIZE}
            if after_id:
                params["after_id"] = after_id
            payload = self.get_json(ctx, "models", params=params)
            entries = payload.get("data") if isinstance(payload, dict) else None
            if not isinstance(entries, list):
                raise ValueError("Unexpected /models response from anthropic")
            models.extend(self._to_model(e) for e in entries if e.get("id"))
            after_id = payload.get("last_id")
            if not payload.get("has_more") or not after_id:
                break
        self.logger.info(f"{self.provider.id}: listed {len(models)} models")
        return models

    def _to_model(self, entry: Dict[str, Any]) -> Model:
        return Model.model_validate(
            {
                "id": entry["id"],
                "name": entry.get("display_name"),
                "authors": [Author(id="anthropic", name="Anthropic")],
                "features": ModelFeatures(available=True),
                "created_at": entry.get("created_at"),
            }
        )
