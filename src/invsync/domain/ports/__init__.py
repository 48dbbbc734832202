"""Ports the domain depends on; adapters implement them."""

from __future__ import annotations

from .fetching import FetchError, SnapshotFetcher
from .persistence import (
    ActivityLogRepository,
    ChangeEventRepository,
    ConflictRepository,
    ConflictSyncResult,
    InventoryItemRepository,
    LoadRepository,
    ProductRepository,
    StorageError,
)
from .unit_of_work import ReconciliationRepositories, ReconciliationUnitOfWork, UnitOfWork

__all__ = [
    "ActivityLogRepository",
    "ChangeEventRepository",
    "ConflictRepository",
    "ConflictSyncResult",
    "FetchError",
    "InventoryItemRepository",
    "LoadRepository",
    "ProductRepository",
    "ReconciliationRepositories",
    "ReconciliationUnitOfWork",
    "SnapshotFetcher",
    "StorageError",
    "UnitOfWork",
]
