"""
Tests for catalog YAML persistence.
"""

import pytest
import yaml

from modelatlas.catalog.catalog import Catalog
from modelatlas.catalog.models import Model
from modelatlas.catalog.persistence import dump_catalog, load_catalog, save_catalog
from modelatlas.errors import ConfigurationError


class TestLoadCatalog:
    """Test cases for load_catalog."""

    def test_load_catalog(self, catalog_file):
        """Test loading the sample catalog file."""
        catalog = load_catalog(catalog_file)
        assert catalog.provider_ids() == ["anthropic", "openai"]
        assert len(catalog) == 3
        gpt = catalog.model("openai", "gpt-4o")
        assert gpt.pricing.input == 2.5
        assert catalog.provider("openai").api_key.name == "OPENAI_API_KEY"

    def test_missing_file(self, temp_dir):
        """Test that a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_catalog(temp_dir / "missing.yaml")

    def test_invalid_yaml(self, temp_dir):
        """Test that unparsable YAML is a configuration error."""
        path = temp_dir / "broken.yaml"
        path.write_text("providers: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_catalog(path)

    def test_empty_file(self, temp_dir):
        """Test that an empty file loads as an empty catalog."""
        path = temp_dir / "empty.yaml"
        path.write_text("")
        assert load_catalog(path).is_empty()


class TestSaveCatalog:
    """Test cases for save_catalog and dump_catalog."""

    def test_save_and_reload(self, sample_catalog, temp_dir):
        """Test that a saved catalog reloads with the same content."""
        path = save_catalog(sample_catalog, temp_dir / "out" / "catalog.yaml")
        assert path.exists()
        reloaded = load_catalog(path)
        assert reloaded.to_dict() == sample_catalog.to_dict()

    def test_dump_is_deterministic(self):
        """Test that insertion order does not change the dump."""
        first, second = Catalog(), Catalog()
        models = [("b", "m2"), ("a", "m1"), ("b", "m1")]
        for provider_id, model_id in models:
            first.set_model(provider_id, Model(id=model_id, name=model_id.upper()))
        for provider_id, model_id in reversed(models):
            second.set_model(provider_id, Model(id=model_id, name=model_id.upper()))
        assert dump_catalog(first) == dump_catalog(second)

    def test_dump_is_plain_yaml(self, sample_catalog):
        """Test that the dump parses back into the dict layout."""
        assert yaml.safe_load(dump_catalog(sample_catalog)) == sample_catalog.to_dict()
