"""
Catalog data model, in-memory catalog and YAML persistence.
"""

from modelatlas.merge.strategies import MergeStrategy

from .catalog import Catalog
from .changeset import (
    FieldChange,
    ModelUpdate,
    ProviderChangeset,
    compare_catalogs,
    compare_models,
    compare_provider_models,
)
from .models import (
    Author,
    FloatRange,
    Model,
    ModelFeatures,
    ModelGeneration,
    ModelLimits,
    ModelMetadata,
    ModelModalities,
    ModelPricing,
    Provider,
    ProviderAPIKey,
    ProviderEnvVar,
)
from .persistence import dump_catalog, load_catalog, save_catalog

__all__ = [
    "Author",
    "Catalog",
    "FieldChange",
    "FloatRange",
    "MergeStrategy",
    "Model",
    "ModelFeatures",
    "ModelGeneration",
    "ModelLimits",
    "ModelMetadata",
    "ModelModalities",
    "ModelPricing",
    "ModelUpdate",
    "Provider",
    "ProviderAPIKey",
    "ProviderChangeset",
    "ProviderEnvVar",
    "compare_catalogs",
    "compare_models",
    "compare_provider_models",
    "dump_catalog",
    "load_catalog",
    "save_catalog",
]
