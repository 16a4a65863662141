"""
Tests for the in-memory catalog and its merge strategies.
"""

import pytest

from modelatlas.catalog.catalog import Catalog
from modelatlas.catalog.models import Model, ModelLimits, Provider
from modelatlas.errors import ConfigurationError, MergeError
from modelatlas.merge.authority import SourceRef, SourceType
from modelatlas.merge.strategies import MergeStrategy

LOCAL = SourceRef(SourceType.LOCAL_CATALOG, priority=80, order=0)
API = SourceRef(SourceType.PROVIDER_API, priority=90, order=1)


def model(**fields):
    return Model.model_validate(fields)


class TestCatalogBasics:
    """Test cases for catalog storage and lookups."""

    def test_empty_catalog(self):
        """Test a freshly created catalog."""
        catalog = Catalog()
        assert catalog.is_empty()
        assert len(catalog) == 0
        assert catalog.models("openai") == []
        assert catalog.merge_strategy is MergeStrategy.AUTHORITY
        assert catalog.to_dict() == {"providers": []}

    def test_set_model_deduplicates_by_id(self):
        """Test that setting the same ID twice keeps a single record."""
        catalog = Catalog()
        catalog.set_model("openai", model(id="gpt-4o", name="GPT-4o"), source=LOCAL)
        catalog.set_model("openai", model(id="gpt-4o", description="x"), source=API)
        assert len(catalog) == 1
        assert [m.id for m in catalog.models("openai")] == ["gpt-4o"]

    def test_same_id_in_different_providers(self):
        """Test that model IDs are scoped by provider."""
        catalog = Catalog()
        catalog.set_model("groq", model(id="llama-3"))
        catalog.set_model("cerebras", model(id="llama-3"))
        assert len(catalog) == 2
        assert catalog.provider_ids() == ["cerebras", "groq"]

    def test_stored_records_are_copies(self):
        """Test that mutating the input does not change the catalog."""
        catalog = Catalog()
        original = model(id="m1", name="Original")
        catalog.set_model("p", original)
        original.name = "Changed"
        assert catalog.model("p", "m1").name == "Original"

    def test_list_models_sorted(self):
        """Test deterministic enumeration order."""
        catalog = Catalog()
        for provider_id, model_id in [("b", "z"), ("a", "y"), ("b", "a")]:
            catalog.set_model(provider_id, model(id=model_id))
        assert [(p, m.id) for p, m in catalog.list_models()] == [
            ("a", "y"),
            ("b", "a"),
            ("b", "z"),
        ]

    def test_remove_model(self):
        """Test removing a model and its provenance."""
        catalog = Catalog()
        catalog.set_model("p", model(id="m1", name="x"), source=LOCAL)
        assert catalog.remove_model("p", "m1")
        assert catalog.model("p", "m1") is None
        assert catalog.provenance("p", "m1") == {}
        assert not catalog.remove_model("p", "m1")


class TestAuthorityMerge:
    """Test cases for the field-by-field AUTHORITY strategy."""

    def test_local_name_api_context_window(self):
        """Test the authoritative name survives while API fills limits."""
        catalog = Catalog()
        catalog.set_model("p", model(id="m1", name="Local Name"), source=LOCAL)
        catalog.set_model(
            "p",
            model(id="m1", name="API Name", limits={"context_window": 8192}),
            source=API,
        )
        merged = catalog.model("p", "m1")
        assert merged.name == "Local Name"
        assert merged.limits.context_window == 8192

    def test_result_independent_of_insertion_order(self):
        """Test that authority decisions do not depend on merge order."""
        local = model(id="m1", name="Local", description="Curated")
        api = model(
            id="m1",
            name="API",
            features={"vision": True},
            limits={"context_window": 1000},
        )
        forward, backward = Catalog(), Catalog()
        forward.set_model("p", local, source=LOCAL)
        forward.set_model("p", api, source=API)
        backward.set_model("p", api, source=API)
        backward.set_model("p", local, source=LOCAL)
        assert forward.to_dict() == backward.to_dict()

    def test_existing_values_not_dropped(self):
        """Test that fields missing from the incoming record are kept."""
        catalog = Catalog()
        catalog.set_model(
            "p", model(id="m1", pricing={"input": 1.0, "output": 2.0}), source=LOCAL
        )
        catalog.set_model("p", model(id="m1", features={"chat": True}), source=API)
        merged = catalog.model("p", "m1")
        assert merged.pricing.input == 1.0
        assert merged.features.chat is True

    def test_provenance_tracks_winning_source(self):
        """Test per-field provenance after a merge."""
        catalog = Catalog()
        catalog.set_model("p", model(id="m1", name="Local"), source=LOCAL)
        catalog.set_model(
            "p", model(id="m1", name="API", features={"vision": True}), source=API
        )
        provenance = catalog.provenance("p", "m1")
        assert provenance["name"] == LOCAL
        assert provenance["features.vision"] == API

    def test_invalid_merge_raises_and_keeps_existing(self):
        """Test that a merged record failing validation raises MergeError."""
        catalog = Catalog()
        catalog.set_model("p", model(id="m1", limits={"context_window": 4096}), source=LOCAL)
        with pytest.raises(MergeError) as exc_info:
            catalog.set_model(
                "p",
                model(id="m1", limits={"context_window": 200000, "max_output": 8192}),
                source=API,
            )
        assert exc_info.value.model_id == "m1"
        assert catalog.model("p", "m1").limits == ModelLimits(context_window=4096)


class TestOtherStrategies:
    """Test cases for REPLACE_ALL, ENRICH_EMPTY and APPEND_ONLY."""

    def test_replace_all(self):
        """Test that the incoming record fully replaces the existing one."""
        catalog = Catalog(MergeStrategy.REPLACE_ALL)
        catalog.set_model("p", model(id="m1", name="Old", description="stale"))
        catalog.set_model("p", model(id="m1", name="New"))
        merged = catalog.model("p", "m1")
        assert merged.name == "New"
        assert merged.description is None

    def test_enrich_empty(self):
        """Test that only empty fields are filled."""
        catalog = Catalog(MergeStrategy.ENRICH_EMPTY)
        catalog.set_model("p", model(id="m1", name="Old"), source=API)
        catalog.set_model("p", model(id="m1", name="New", description="d"), source=LOCAL)
        merged = catalog.model("p", "m1")
        assert merged.name == "Old"
        assert merged.description == "d"

    def test_append_only(self):
        """Test that existing IDs are left untouched."""
        catalog = Catalog(MergeStrategy.APPEND_ONLY)
        catalog.set_model("p", model(id="m1", name="Old"))
        catalog.set_model("p", model(id="m1", name="New", description="d"))
        catalog.set_model("p", model(id="m2", name="Added"))
        assert catalog.model("p", "m1").name == "Old"
        assert catalog.model("p", "m1").description is None
        assert catalog.model("p", "m2").name == "Added"

    def test_per_call_strategy_override(self):
        """Test that a strategy passed to set_model wins over the default."""
        catalog = Catalog()
        catalog.set_model("p", model(id="m1", name="Old", description="x"))
        catalog.set_model(
            "p", model(id="m1", name="New"), strategy=MergeStrategy.REPLACE_ALL
        )
        assert catalog.model("p", "m1").description is None


class TestProviders:
    """Test cases for provider records."""

    def test_provider_fields_merge_by_authority(self):
        """Test that the local catalog keeps descriptive provider fields."""
        catalog = Catalog()
        catalog.set_provider(Provider(id="openai", name="OpenAI"), source=LOCAL)
        catalog.set_provider(
            Provider(id="openai", name="openai-api", authors=["openai"]), source=API
        )
        provider = catalog.provider("openai")
        assert provider.name == "OpenAI"
        assert provider.authors == ["openai"]

    def test_credentials_survive_merge(self):
        """Test that runtime credentials are not lost by a merge."""
        catalog = Catalog()
        catalog.set_provider(
            Provider(id="openai", api_key={"name": "OPENAI_API_KEY"}, api_key_value="sk-1"),
            source=LOCAL,
        )
        catalog.set_provider(Provider(id="openai", authors=["openai"]), source=API)
        assert catalog.provider("openai").api_key_value == "sk-1"


class TestMergeWithAndCopy:
    """Test cases for catalog-level merging and copying."""

    def test_merge_with_carries_provenance(self):
        """Test that merge_with applies the other catalog's provenance."""
        base = Catalog()
        base.set_model("p", model(id="m1", name="API"), source=API)
        local = Catalog()
        local.set_model("p", model(id="m1", name="Local"), source=LOCAL)
        local.set_model("p", model(id="m2", name="Only local"), source=LOCAL)

        errors = base.merge_with(local)

        assert errors == []
        assert base.model("p", "m1").name == "Local"
        assert base.model("p", "m2").name == "Only local"

    def test_merge_with_collects_errors(self):
        """Test that per-model failures are returned and the rest merged."""
        base = Catalog()
        base.set_model("p", model(id="m1", limits={"context_window": 10}), source=LOCAL)
        other = Catalog()
        other.set_model("p", model(id="m1", limits={"max_output": 100}), source=API)
        other.set_model("p", model(id="m2"), source=API)

        errors = base.merge_with(other)

        assert len(errors) == 1
        assert isinstance(errors[0], MergeError)
        assert base.model("p", "m2") is not None

    def test_copy_is_independent(self):
        """Test that a copy shares no records with the original."""
        catalog = Catalog()
        catalog.set_model("a", model(id="m1", name="A"))
        catalog.set_model("b", model(id="m2", name="B"))
        clone = catalog.copy(["a"])
        clone.set_model("a", model(id="m3"))
        assert clone.provider_ids() == ["a"]
        assert catalog.model("a", "m3") is None


class TestSerialization:
    """Test cases for to_dict/from_dict."""

    def test_to_dict_is_sorted_and_pruned(self, sample_catalog):
        """Test the dumped layout."""
        data = sample_catalog.to_dict()
        assert [p["id"] for p in data["providers"]] == ["anthropic", "openai"]
        openai = data["providers"][1]
        assert [m["id"] for m in openai["models"]] == ["gpt-4o", "gpt-4o-mini"]
        assert "authors" not in openai["models"][0]
        assert "api_key_value" not in openai

    def test_models_without_provider_record(self):
        """Test that orphan models still get a provider entry."""
        catalog = Catalog()
        catalog.set_model("p", model(id="m1"))
        assert catalog.to_dict() == {"providers": [{"id": "p", "models": [{"id": "m1"}]}]}

    def test_from_dict_rejects_malformed(self):
        """Test error handling for bad documents."""
        with pytest.raises(ConfigurationError):
            Catalog.from_dict({"providers": {"id": "x"}})
        with pytest.raises(ConfigurationError):
            Catalog.from_dict({"providers": ["not-a-mapping"]})
        with pytest.raises(ConfigurationError):
            Catalog.from_dict({"providers": [{"id": "p", "models": [{"name": "no id"}]}]})

    def test_from_dict_empty(self):
        """Test that an empty document gives an empty catalog."""
        assert Catalog.from_dict(None).is_empty()
        assert Catalog.from_dict({}).is_empty()
