"""
Synchronization: fetch orchestration, catalog building and the entry point.
"""

from .builder import CatalogBuilder
from .options import SyncOptions
from .orchestrator import FetchOrchestrator, FetchOutcome, FetchStatus, FetchTarget
from .synchronizer import SourceStats, Synchronizer, SyncResult

__all__ = [
    "CatalogBuilder",
    "FetchOrchestrator",
    "FetchOutcome",
    "FetchStatus",
    "FetchTarget",
    "SourceStats",
    "SyncOptions",
    "SyncResult",
    "Synchronizer",
]
