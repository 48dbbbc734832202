"""Append-only audit records: change events and sync activity."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .base import Entity, utcnow

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

    from .enums import ChangeType, InventoryBucket


@dataclass(eq=False, kw_only=True)
class ChangeEvent(Entity):
    """One detected difference between the store and an external snapshot."""

    company_id: str
    location_id: str
    bucket: InventoryBucket
    change_type: ChangeType
    serial: str | None = None
    model: str | None = None
    load_number: str | None = None
    cso: str | None = None
    field_changed: str | None = None
    old_value: str | None = None
    new_value: str | None = None
    previous_state: dict[str, Any] | None = None
    current_state: dict[str, Any] | None = None
    source: str | None = None
    run_id: UUID | None = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(eq=False, kw_only=True)
class ActivityLogEntry(Entity):
    """Record of one sync invocation, successful or not."""

    company_id: str
    location_id: str
    action: str
    success: bool
    actor: str = "Inventory Sync Service"
    run_id: UUID | None = None
    duration_ms: int | None = None
    details: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
