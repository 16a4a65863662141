"""
YAML load/save helpers for catalogs.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import yaml

from modelatlas.errors import ConfigurationError
from modelatlas.merge.authority import SourceRef
from modelatlas.merge.strategies import MergeStrategy

from .catalog import Catalog

logger = logging.getLogger(__name__)


def load_catalog(
    path: Union[str, Path],
    merge_strategy: MergeStrategy = MergeStrategy.AUTHORITY,
    source: Optional[SourceRef] = None,
) -> Catalog:
    """
    Read a catalog YAML file.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        ConfigurationError: the file is not valid YAML or not a catalog.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError("catalog", f"failed to parse {path}: {e}") from e
    catalog = Catalog.from_dict(data, merge_strategy=merge_strategy, source=source)
    logger.info(
        f"Loaded catalog from {path}: {len(catalog.provider_ids())} providers, "
        f"{len(catalog)} models"
    )
    return catalog


def dump_catalog(catalog: Catalog) -> str:
    """
    Deterministic YAML text for ``catalog``.
    """
    return yaml.safe_dump(
        catalog.to_dict(),
        sort_keys=True,
        default_flow_style=False,
        allow_unicode=True,
    )


def save_catalog(catalog: Catalog, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(dump_catalog(catalog))
    logger.info(f"Saved catalog with {len(catalog)} models to {path}")
    return path
