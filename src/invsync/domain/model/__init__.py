"""Public domain model surface."""

from __future__ import annotations

from invsync.domain.model.audit import ActivityLogEntry, ChangeEvent
from invsync.domain.model.base import Entity, SyncScope, new_id, utcnow
from invsync.domain.model.conflicts import InventoryConflict
from invsync.domain.model.enums import (
    MIGRATION_EQUIVALENT,
    MIGRATION_ORDER,
    ChangeType,
    ConflictKind,
    ConflictStatus,
    InventoryBucket,
    SyncTarget,
    equivalence_class,
)
from invsync.domain.model.inventory import (
    DEFAULT_ORPHAN_STATUS,
    DEFAULT_PRODUCT_TYPE,
    WORKFLOW_FIELDS,
    InventoryItem,
    Product,
)
from invsync.domain.model.loads import LoadMetadata

__all__ = [
    "DEFAULT_ORPHAN_STATUS",
    "DEFAULT_PRODUCT_TYPE",
    "MIGRATION_EQUIVALENT",
    "MIGRATION_ORDER",
    "WORKFLOW_FIELDS",
    "ActivityLogEntry",
    "ChangeEvent",
    "ChangeType",
    "ConflictKind",
    "ConflictStatus",
    "Entity",
    "InventoryBucket",
    "InventoryConflict",
    "InventoryItem",
    "LoadMetadata",
    "Product",
    "SyncScope",
    "SyncTarget",
    "equivalence_class",
    "new_id",
    "utcnow",
]
