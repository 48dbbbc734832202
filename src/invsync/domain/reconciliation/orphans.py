"""Soft-orphaning of stored items the snapshot no longer reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from invsync.domain.model import ChangeType

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable
    from uuid import UUID

    from invsync.domain.model import ChangeEvent, InventoryItem

    from .contracts import EventContext


@dataclass(slots=True)
class OrphanReport:
    orphan_ids: list[UUID] = field(default_factory=list["UUID"])
    events: list[ChangeEvent] = field(default_factory=list["ChangeEvent"])


def track_orphans(
    rows: Iterable[InventoryItem],
    *,
    matched_ids: Collection[UUID],
    seen_serials: Collection[str],
    context: EventContext,
) -> OrphanReport:
    """Flag rows of the target bucket that nothing in the snapshot accounted for.

    ``seen_serials`` covers serials the snapshot reported but the import skipped
    (conflicts, duplicates); their rows are not orphans. Rows without a serial and
    rows already orphaned are ignored.
    """

    report = OrphanReport()
    for row in rows:
        if row.bucket != context.bucket or not row.serial:
            continue
        if row.ge_orphaned or row.id in matched_ids or row.serial in seen_serials:
            continue
        report.orphan_ids.append(row.id)
        report.events.append(
            context.event(
                ChangeType.ITEM_DISAPPEARED,
                serial=row.serial,
                model=row.model,
                load_number=row.sub_inventory,
                cso=row.cso or None,
                previous_state={
                    "availability_status": row.ge_availability_status,
                    "sub_inventory": row.sub_inventory,
                    "inv_qty": row.ge_inv_qty,
                },
                source=context.item_source,
            )
        )
    return report
