"""Canonical inventory item and its product reference."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .base import Entity, utcnow
from .enums import InventoryBucket

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

# Columns the scanning workflow owns. Reconciliation never writes them, with the
# single exception of ``status`` when an item is orphaned or recovered.
WORKFLOW_FIELDS: tuple[str, ...] = ("is_scanned", "scanned_at", "scanned_by", "notes", "status")

DEFAULT_PRODUCT_TYPE = "UNKNOWN"
# Status stamped on items the external system stopped reporting.
DEFAULT_ORPHAN_STATUS = "NOT_IN_GE"


@dataclass(eq=False, kw_only=True)
class InventoryItem(Entity):
    """One physical unit (or unserialized stock line) held at a location.

    ``ge_*`` attributes mirror the dealer-management export verbatim; placement
    attributes (``bucket``, ``sub_inventory``, ``qty``) are derived from it.
    """

    company_id: str
    location_id: str
    serial: str | None
    model: str
    cso: str = ""
    bucket: InventoryBucket = InventoryBucket.UNKNOWN
    sub_inventory: str | None = None
    qty: int = 1
    product_id: UUID | None = None
    product_type: str = DEFAULT_PRODUCT_TYPE

    ge_model: str | None = None
    ge_serial: str | None = None
    ge_inv_qty: int | None = None
    ge_availability_status: str | None = None
    ge_availability_message: str | None = None
    ge_ordc: str | None = None
    ge_orphaned: bool = False
    ge_orphaned_at: datetime | None = None

    is_scanned: bool = False
    scanned_at: datetime | None = None
    scanned_by: str | None = None
    notes: str | None = None
    status: str | None = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_live(self) -> bool:
        return not self.ge_orphaned


@dataclass(eq=False, kw_only=True)
class Product(Entity):
    """Catalog entry a model number resolves to."""

    company_id: str
    model: str
    product_type: str = DEFAULT_PRODUCT_TYPE
