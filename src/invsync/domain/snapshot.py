"""Validated, typed view of one dealer-management export.

Adapters translate raw export rows into these DTOs; everything downstream of
this module works on parsed values only. Coercion problems do not reject rows:
they are recorded as ``ParseWarning`` so callers can surface them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from invsync.domain.model import utcnow

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from invsync.domain.model import InventoryBucket


@dataclass(frozen=True, slots=True, kw_only=True)
class ParseWarning:
    """A row value that was defaulted instead of rejected."""

    source: str
    row_index: int
    field: str
    raw_value: str | None
    message: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ExternalItem:
    """One inventory line as reported by the dealer-management system."""

    serial: str
    model: str
    quantity: int | None = None
    availability_status: str | None = None
    availability_message: str | None = None
    ordc: str | None = None
    load_number: str | None = None
    synthetic_serial: bool = False

    @property
    def placement_qty(self) -> int:
        """Quantity used for placement; unknown or non-positive counts as one unit."""

        if self.quantity is None or self.quantity <= 0:
            return 1
        return self.quantity


@dataclass(frozen=True, slots=True, kw_only=True)
class LoadInfo:
    """Merged load-list and report-history metadata for one load."""

    load_number: str
    status: str | None = None
    cso_status: str | None = None
    units: int | None = None
    notes: str | None = None
    submitted_date: str | None = None
    cso: str | None = None
    scanned_at: str | None = None
    inv_org: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class LoadItem:
    """A serial listed on a load's detail report."""

    load_number: str
    serial: str
    model: str | None = None
    quantity: int | None = None
    ordc: str | None = None
    synthetic_serial: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class Snapshot:
    """Point-in-time export of a bucket.

    ``loads`` is ``None`` when the bucket carries no load data at all, which is
    different from an export that lists zero loads.
    """

    bucket: InventoryBucket
    items: tuple[ExternalItem, ...] = ()
    loads: tuple[LoadInfo, ...] | None = None
    load_items: Mapping[str, tuple[LoadItem, ...]] = field(default_factory=dict)
    warnings: tuple[ParseWarning, ...] = ()
    fetched_at: datetime = field(default_factory=utcnow)

    @property
    def has_load_data(self) -> bool:
        return self.loads is not None
