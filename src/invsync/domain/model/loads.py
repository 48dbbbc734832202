"""Stored load metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import Entity, utcnow
from .enums import InventoryBucket

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class LoadMetadata(Entity):
    """A shipment/sale grouping of items, keyed by bucket-scoped ``load_number``.

    ``status`` is the local lifecycle of the load; the external lifecycle lives in
    ``ge_source_status`` / ``ge_cso_status``.
    """

    company_id: str
    location_id: str
    bucket: InventoryBucket
    load_number: str
    status: str = "active"
    friendly_name: str | None = None

    ge_source_status: str | None = None
    ge_cso_status: str | None = None
    ge_units: int | None = None
    ge_notes: str | None = None
    ge_submitted_date: str | None = None
    ge_cso: str | None = None
    ge_inv_org: str | None = None
    ge_scanned_at: str | None = None
    ge_orphaned: bool = False

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
