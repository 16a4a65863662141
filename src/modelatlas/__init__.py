"""
ModelAtlas: aggregates AI model catalogs from a local catalog and live
provider APIs into one reconciled snapshot.

Subpackages
-----------
- catalog:  Model/provider schema, in-memory catalog, YAML persistence
- merge:    Field authority tables and record merge strategies
- sources:  Local catalog and provider API sources, provider clients
- sync:     Fetch orchestration, catalog building, synchronization entry point
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__: str = version(__name__)
except PackageNotFoundError:  # local editable install
    __version__ = "0.0.0-dev"

__all__ = [
    "catalog",
    "merge",
    "sources",
    "sync",
]

from . import catalog, merge, sources, sync
