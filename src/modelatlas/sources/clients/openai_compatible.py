"""
Client for providers exposing an OpenAI-style ``GET /models`` listing.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from modelatlas.catalog.models import Author, Model, ModelFeatures
from modelatlas.context import RunContext

from .base import BaseClient
from .registry import register_client

DEFAULT_BASE_URLS: Dict[str, str] = {
    "openai": "https://api.openai.com/v1",
    "groq": "https://api.groq.com/openai/v1",
    "deepseek": "https://api.deepseek.com",
    "cerebras": "https://api.cerebras.ai/v1",
}

# owned_by values that name the platform rather than an author
GENERIC_OWNERS = {"system", "openai-internal", "user"}


@register_client(*DEFAULT_BASE_URLS)
class OpenAICompatibleClient(BaseClient):
    """
    Maps ``{"data": [{"id", "owned_by", "created"}]}`` into models.
    """

    def resolve_default_base_url(self, provider_id: str) -> Optional[str]:
        return DEFAULT_BASE_URLS.get(provider_id)

    def list_models(self, ctx: RunContext) -> List[Model]:
        payload = self.get_json(ctx, "models")
        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise ValueError(
                f"Unexpected /models response from {self.provider.id}: missing 'data' list"
            )
        models = [self._to_model(entry) for entry in entries if entry.get("id")]
        self.logger.info(f"{self.provider.id}: listed {len(models)} models")
        return models

    def _to_model(self, entry: Dict[str, Any]) -> Model:
        owner = entry.get("owned_by")
        created = entry.get("created")
        return Model(
            id=entry["id"],
            authors=[Author(id=owner)] if owner and owner not in GENERIC_OWNERS else [],
            features=ModelFeatures(available=True),
            created_at=(
                datetime.fromtimestamp(created, tz=timezone.utc)
                if isinstance(created, (int, float))
                else None
            ),
        )
