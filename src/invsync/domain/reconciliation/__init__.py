"""Reconciliation of stored inventory against external snapshots."""

from __future__ import annotations

from .contracts import (
    ConflictItemResolution,
    ConflictPayload,
    DeferredItemResolution,
    EventContext,
    ItemPayload,
    ItemResolution,
    LoadPayload,
    MatchedItemResolution,
    NewItemResolution,
    ResolutionStatus,
)
from .detect import detect_item_changes, detect_load_changes, new_item_event
from .engine import BucketReconciler, BucketSyncResult
from .errors import DuplicateRunError, PersistenceError, ReconciliationError
from .orchestrator import (
    ALL_TARGETS,
    INDEPENDENT_TARGETS,
    ORDERED_TARGETS,
    AggregateSyncResult,
    SyncOrchestrator,
    aggregate_stats,
)
from .orphans import OrphanReport, track_orphans
from .persist import DEFAULT_BATCH_SIZE, PersistenceResult, dedupe_by_id, persist_plan
from .plan import ReconciliationPlan, ReconciliationStats, plan_reconciliation
from .resolve import CurrentRowIndex, resolve_item

__all__ = [
    "ALL_TARGETS",
    "DEFAULT_BATCH_SIZE",
    "INDEPENDENT_TARGETS",
    "ORDERED_TARGETS",
    "AggregateSyncResult",
    "BucketReconciler",
    "BucketSyncResult",
    "ConflictItemResolution",
    "ConflictPayload",
    "CurrentRowIndex",
    "DeferredItemResolution",
    "DuplicateRunError",
    "EventContext",
    "ItemPayload",
    "ItemResolution",
    "LoadPayload",
    "MatchedItemResolution",
    "NewItemResolution",
    "OrphanReport",
    "PersistenceError",
    "PersistenceResult",
    "ReconciliationError",
    "ReconciliationPlan",
    "ReconciliationStats",
    "ResolutionStatus",
    "SyncOrchestrator",
    "aggregate_stats",
    "dedupe_by_id",
    "detect_item_changes",
    "detect_load_changes",
    "new_item_event",
    "persist_plan",
    "plan_reconciliation",
    "resolve_item",
    "track_orphans",
]
