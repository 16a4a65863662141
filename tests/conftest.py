"""
Fixtures and test configuration for the ModelAtlas test suite.
"""

import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import yaml

from modelatlas.catalog.catalog import Catalog
from modelatlas.catalog.models import Model, Provider
from modelatlas.merge.authority import SourceType
from modelatlas.settings import Settings
from modelatlas.sources.base import BaseSource
from modelatlas.sources.registry import SourceRegistry


class FakeSource(BaseSource):
    """
    In-memory source with scripted models, failures and delays per provider.

    Clones share the scripted data and the ``calls`` list so tests can observe
    what the orchestrator's per-task copies did.
    """

    def __init__(
        self,
        source_type: SourceType,
        priority: int,
        models: Optional[Dict[str, List[Model]]] = None,
        providers: Optional[Dict[str, Provider]] = None,
        errors: Optional[Dict[str, Exception]] = None,
        delay: float = 0.0,
        available: bool = True,
        name: Optional[str] = None,
        release: Optional[threading.Event] = None,
        calls: Optional[list] = None,
    ):
        self.source_type = source_type
        super().__init__(name=name or f"fake-{source_type.value}", priority=priority)
        self.models = models or {}
        self.providers = providers or {}
        self.errors = errors or {}
        self.delay = delay
        self.available = available
        self.release = release
        self.calls = calls if calls is not None else []
        self.config = None

    def configure(self, config):
        self.config = config

    def is_available(self):
        return self.available and self.config is not None and self.config.enabled

    def fetch(self, ctx, provider_id):
        self.calls.append(provider_id)
        if self.release is not None:
            # ignores cancellation on purpose to simulate a stuck request
            self.release.wait(5)
        if self.delay:
            ctx.wait(self.delay)
            ctx.raise_if_cancelled()
        if provider_id in self.errors:
            raise self.errors[provider_id]
        return [m.model_copy(deep=True) for m in self.models.get(provider_id, [])]

    def fetch_provider_metadata(self, ctx, provider_id):
        provider = self.providers.get(provider_id)
        return provider.model_copy(deep=True) if provider is not None else None

    def reset(self):
        self.config = None

    def clone(self):
        return FakeSource(
            self.source_type,
            self.priority,
            models=self.models,
            providers=self.providers,
            errors=self.errors,
            delay=self.delay,
            available=self.available,
            name=self.name,
            release=self.release,
            calls=self.calls,
        )


def make_registry(*sources: BaseSource) -> SourceRegistry:
    registry = SourceRegistry()
    for source in sources:
        registry.register(source)
    return registry


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture
def test_settings():
    """Settings tuned for fast tests."""
    return Settings(
        log_level="DEBUG",
        max_workers=4,
        request_timeout=5,
        poll_interval=0.01,
        cancel_grace_period=0.2,
    )


@pytest.fixture
def catalog_data():
    """Catalog document in the YAML layout."""
    return {
        "providers": [
            {
                "id": "openai",
                "name": "OpenAI",
                "headquarters": "San Francisco, USA",
                "api_key": {"name": "OPENAI_API_KEY", "pattern": "sk-.*"},
                "models": [
                    {
                        "id": "gpt-4o",
                        "name": "GPT-4o",
                        "description": "Flagship multimodal model",
                        "limits": {"context_window": 128000, "max_output": 16384},
                        "pricing": {"currency": "USD", "input": 2.5, "output": 10.0},
                    },
                    {
                        "id": "gpt-4o-mini",
                        "name": "GPT-4o mini",
                        "limits": {"context_window": 128000},
                    },
                ],
            },
            {
                "id": "anthropic",
                "name": "Anthropic",
                "api_key": {"name": "ANTHROPIC_API_KEY"},
                "models": [
                    {
                        "id": "claude-sonnet-4",
                        "name": "Claude Sonnet 4",
                        "limits": {"context_window": 200000, "max_output": 64000},
                    }
                ],
            },
        ]
    }


@pytest.fixture
def sample_catalog(catalog_data):
    """Local catalog loaded from ``catalog_data``."""
    return Catalog.from_dict(catalog_data)


@pytest.fixture
def catalog_file(temp_dir, catalog_data):
    """``catalog_data`` written as YAML."""
    path = temp_dir / "catalog.yaml"
    with open(path, "w") as f:
        yaml.safe_dump(catalog_data, f)
    return path
