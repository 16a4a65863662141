"""
Tests for catalog changesets.
"""

from modelatlas.catalog.catalog import Catalog
from modelatlas.catalog.changeset import (
    ProviderChangeset,
    compare_catalogs,
    compare_models,
    compare_provider_models,
)
from modelatlas.catalog.models import Model
from modelatlas.merge.authority import SourceRef, SourceType


class TestCompareModels:
    """Test cases for field-level model comparison."""

    def test_identical_models(self):
        """Test that equal records have no changes."""
        model = Model(id="m1", name="M", description="d")
        assert compare_models(model, model.model_copy(deep=True)) == []

    def test_changed_added_and_cleared_fields(self):
        """Test that every differing leaf path is reported in path order."""
        existing = Model.model_validate(
            {"id": "m1", "name": "Old", "description": "gone", "limits": {"context_window": 1000}}
        )
        new = Model.model_validate(
            {"id": "m1", "name": "New", "limits": {"context_window": 1000, "max_output": 500}}
        )
        changes = compare_models(
            existing,
            new,
            {"name": SourceRef(SourceType.LOCAL_CATALOG, priority=80)},
        )

        assert [(c.path, c.old, c.new) for c in changes] == [
            ("description", "gone", None),
            ("limits.max_output", None, 500),
            ("name", "Old", "New"),
        ]
        assert changes[2].source is SourceType.LOCAL_CATALOG
        assert changes[0].source is None
        assert str(changes[2]) == "name: 'Old' -> 'New'"


class TestCompareProviderModels:
    """Test cases for per-provider model comparison."""

    def test_added_updated_removed_sorted(self):
        """Test classification and ordering by model ID."""
        existing = [Model(id="b", name="B"), Model(id="z"), Model(id="a")]
        new = [Model(id="y"), Model(id="b", name="B2"), Model(id="a"), Model(id="c")]

        changeset = compare_provider_models("p", existing, new)

        assert [m.id for m in changeset.added] == ["c", "y"]
        assert [u.model_id for u in changeset.updated] == ["b"]
        assert changeset.updated[0].existing.name == "B"
        assert changeset.updated[0].new.name == "B2"
        assert [m.id for m in changeset.removed] == ["z"]
        assert changeset.total == 4
        assert str(changeset) == "2 added, 1 updated, 1 removed"

    def test_no_changes(self):
        """Test an empty changeset."""
        changeset = ProviderChangeset("p")
        assert not changeset.has_changes
        assert str(changeset) == "no changes"


class TestCompareCatalogs:
    """Test cases for catalog-level comparison."""

    def test_only_requested_providers(self):
        """Test that other providers are left out."""
        existing = Catalog()
        existing.set_model("p", Model(id="m1"))
        existing.set_model("q", Model(id="m2"))
        new = Catalog()
        new.set_model("p", Model(id="m1"))

        changesets = compare_catalogs(existing, new, ["p"])

        assert list(changesets) == ["p"]
        assert not changesets["p"].has_changes

    def test_without_existing_catalog(self):
        """Test that everything is added when there is nothing to compare with."""
        new = Catalog()
        new.set_model("p", Model(id="m2"))
        new.set_model("p", Model(id="m1"))
        changesets = compare_catalogs(None, new, ["p"])
        assert [m.id for m in changesets["p"].added] == ["m1", "m2"]
