"""Enumerations shared across the inventory model."""

from __future__ import annotations

from enum import StrEnum


class InventoryBucket(StrEnum):
    """Business lifecycle stage partitioning a location's inventory."""

    FG = "FG"
    ASIS = "ASIS"
    STA = "STA"
    BACKHAUL = "BackHaul"
    LOCAL_STOCK = "LocalStock"
    STAGED = "Staged"
    INBOUND = "Inbound"
    WILL_CALL = "WillCall"
    PARTS = "Parts"
    UNKNOWN = "UNKNOWN"


class ChangeType(StrEnum):
    ITEM_APPEARED = "item_appeared"
    ITEM_DISAPPEARED = "item_disappeared"
    ITEM_STATUS_CHANGED = "item_status_changed"
    ITEM_RESERVED = "item_reserved"
    ITEM_LOAD_CHANGED = "item_load_changed"
    ITEM_QTY_CHANGED = "item_qty_changed"
    ITEM_MIGRATED = "item_migrated"
    LOAD_APPEARED = "load_appeared"
    LOAD_DISAPPEARED = "load_disappeared"
    LOAD_SOLD = "load_sold"
    LOAD_CSO_ASSIGNED = "load_cso_assigned"
    LOAD_CSO_STATUS_CHANGED = "load_cso_status_changed"
    LOAD_UNITS_CHANGED = "load_units_changed"


class SyncTarget(StrEnum):
    """Named sync step; each reconciles exactly one bucket."""

    FG = "fg"
    ASIS = "asis"
    STA = "sta"
    INBOUND = "inbound"
    BACKHAUL = "backhaul"
    ORDERS = "orders"

    @property
    def bucket(self) -> InventoryBucket:
        return _BUCKET_BY_TARGET[self]

    @property
    def activity_action(self) -> str:
        return f"{self.value}_sync"


_BUCKET_BY_TARGET: dict[SyncTarget, InventoryBucket] = {
    SyncTarget.FG: InventoryBucket.FG,
    SyncTarget.ASIS: InventoryBucket.ASIS,
    SyncTarget.STA: InventoryBucket.STA,
    SyncTarget.INBOUND: InventoryBucket.INBOUND,
    SyncTarget.BACKHAUL: InventoryBucket.BACKHAUL,
    SyncTarget.ORDERS: InventoryBucket.LOCAL_STOCK,
}

# Buckets an item may move between without counting as a conflict, in lifecycle order.
MIGRATION_ORDER: tuple[InventoryBucket, ...] = (InventoryBucket.ASIS, InventoryBucket.STA)
MIGRATION_EQUIVALENT: frozenset[InventoryBucket] = frozenset(MIGRATION_ORDER)


def equivalence_class(bucket: InventoryBucket) -> frozenset[InventoryBucket]:
    """Return the buckets ``bucket`` may exchange items with, itself included."""

    if bucket in MIGRATION_EQUIVALENT:
        return MIGRATION_EQUIVALENT
    return frozenset({bucket})


class ConflictKind(StrEnum):
    """Why a serial could not be placed cleanly."""

    BUCKET = "bucket"
    LOAD = "load"


class ConflictStatus(StrEnum):
    OPEN = "open"
    RESOLVED = "resolved"
