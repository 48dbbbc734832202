"""Shared reconciliation contract components.

This module holds:
- identity-resolution outcome variants
- write payloads (items, loads, conflicts) handed from the planner to the persister
- the per-run event context used to stamp change events
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Literal

from invsync.domain.model import ChangeEvent

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from invsync.domain.model import (
        ChangeType,
        ConflictKind,
        InventoryBucket,
        InventoryItem,
        SyncScope,
    )


class ResolutionStatus(StrEnum):
    """Outcome of matching one external item against the store."""

    NEW = "new"
    MATCHED = "matched"
    DEFERRED = "deferred"
    CONFLICT = "conflict"


@dataclass(slots=True, kw_only=True)
class NewItemResolution:
    """No usable record holds the serial; the item becomes a new row."""

    status: Literal[ResolutionStatus.NEW] = ResolutionStatus.NEW
    reason: str | None = None


@dataclass(slots=True, kw_only=True)
class MatchedItemResolution:
    """The serial resolved to ``target``; ``migrated`` means its bucket changes."""

    target: InventoryItem
    migrated: bool = False
    reason: str | None = None
    status: Literal[ResolutionStatus.MATCHED] = ResolutionStatus.MATCHED


@dataclass(slots=True, kw_only=True)
class DeferredItemResolution:
    """A live record in a later migration-equivalent bucket owns the serial."""

    holder: InventoryItem
    reason: str | None = None
    status: Literal[ResolutionStatus.DEFERRED] = ResolutionStatus.DEFERRED


@dataclass(slots=True, kw_only=True)
class ConflictItemResolution:
    """A live record in a non-equivalent bucket holds the serial."""

    candidates: tuple[InventoryItem, ...]
    reason: str | None = None
    status: Literal[ResolutionStatus.CONFLICT] = ResolutionStatus.CONFLICT

    def __post_init__(self) -> None:
        if not self.candidates:
            raise ValueError("Conflict resolution must include at least one candidate")


type ItemResolution = (
    NewItemResolution | MatchedItemResolution | DeferredItemResolution | ConflictItemResolution
)


@dataclass(frozen=True, slots=True, kw_only=True)
class ItemPayload:
    """Target values for one inventory row.

    ``id is None`` marks a brand-new row. Only placement and ``ge_*`` columns are
    carried; ``reset_status`` clears ``status`` when it still holds the orphan marker.
    """

    id: UUID | None
    company_id: str
    location_id: str
    serial: str
    model: str
    cso: str
    bucket: InventoryBucket
    sub_inventory: str | None
    qty: int
    product_id: UUID | None
    product_type: str
    ge_model: str | None
    ge_serial: str | None
    ge_inv_qty: int | None
    ge_availability_status: str | None
    ge_availability_message: str | None
    ge_ordc: str | None
    ge_orphaned: bool = False
    ge_orphaned_at: datetime | None = None
    reset_status: bool = False

    def values(self) -> dict[str, Any]:
        """Column values written for this row (identity and scope excluded)."""

        return {name: getattr(self, name) for name in ITEM_WRITE_FIELDS}

    def differs_from(self, row: InventoryItem) -> bool:
        if self.reset_status:
            return True
        return any(getattr(row, name) != getattr(self, name) for name in ITEM_WRITE_FIELDS)


ITEM_WRITE_FIELDS: tuple[str, ...] = tuple(
    f.name
    for f in fields(ItemPayload)
    if f.name not in {"id", "company_id", "location_id", "reset_status"}
)


@dataclass(frozen=True, slots=True, kw_only=True)
class LoadPayload:
    """Target values for one load row; ``id is None`` marks a new load."""

    id: UUID | None
    company_id: str
    location_id: str
    bucket: InventoryBucket
    load_number: str
    friendly_name: str | None
    ge_source_status: str | None
    ge_cso_status: str | None
    ge_units: int | None
    ge_notes: str | None
    ge_submitted_date: str | None
    ge_cso: str | None
    ge_inv_org: str | None
    ge_scanned_at: str | None
    ge_orphaned: bool = False

    def values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in LOAD_WRITE_FIELDS}


LOAD_WRITE_FIELDS: tuple[str, ...] = tuple(
    f.name
    for f in fields(LoadPayload)
    if f.name not in {"id", "company_id", "location_id", "bucket", "load_number"}
)


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictPayload:
    """A conflict observed by this run; see ``InventoryConflict`` for the fields."""

    kind: ConflictKind
    serial: str
    conflicting_with: str
    load_number: str | None = None

    @property
    def key(self) -> tuple[ConflictKind, str]:
        return self.kind, self.serial


@dataclass(frozen=True, slots=True)
class EventContext:
    """Scope and run stamp shared by every change event of one plan."""

    scope: SyncScope
    bucket: InventoryBucket
    run_id: UUID | None
    now: datetime

    def event(self, change_type: ChangeType, **attributes: Any) -> ChangeEvent:
        return ChangeEvent(
            company_id=self.scope.company_id,
            location_id=self.scope.location_id,
            bucket=self.bucket,
            change_type=change_type,
            run_id=self.run_id,
            created_at=self.now,
            **attributes,
        )

    @property
    def item_source(self) -> str:
        return self.bucket.value

    @property
    def load_detail_source(self) -> str:
        return f"{self.bucket.value}LoadDetail"

    @property
    def load_data_source(self) -> str:
        return f"{self.bucket.value}LoadData"
