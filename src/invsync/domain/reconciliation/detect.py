"""Field-level change detection.

Responsibilities of this stage:
- diff a matched (stored row, external item) pair into typed change events
- describe brand-new items
- diff stored load metadata against the snapshot's loads
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from invsync.domain.loads import is_sold
from invsync.domain.model import ChangeType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from invsync.domain.model import ChangeEvent, InventoryItem, LoadMetadata
    from invsync.domain.snapshot import ExternalItem, LoadInfo

    from .contracts import EventContext

RESERVED_STATUS = "Reserved"


def _text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _bool_text(value: bool) -> str:  # noqa: FBT001
    return "true" if value else "false"


def detect_item_changes(
    row: InventoryItem,
    item: ExternalItem,
    *,
    load_number: str | None,
    context: EventContext,
    migrated: bool = False,
) -> list[ChangeEvent]:
    """Return the change events turning ``row`` into ``item``, in a fixed order."""

    events: list[ChangeEvent] = []
    common: dict[str, Any] = {
        "serial": item.serial,
        "model": item.model,
        "load_number": load_number,
        "cso": row.cso or None,
    }

    old_status = _text(row.ge_availability_status)
    new_status = _text(item.availability_status)
    if old_status != new_status:
        change_type = (
            ChangeType.ITEM_RESERVED
            if new_status == RESERVED_STATUS
            else ChangeType.ITEM_STATUS_CHANGED
        )
        events.append(
            context.event(
                change_type,
                field_changed="availability_status",
                old_value=old_status,
                new_value=new_status,
                source=context.item_source,
                **common,
            )
        )

    if migrated:
        events.append(
            context.event(
                ChangeType.ITEM_MIGRATED,
                field_changed="inventory_type",
                old_value=row.bucket.value,
                new_value=context.bucket.value,
                source=context.item_source,
                **common,
            )
        )

    old_load = _text(row.sub_inventory)
    if old_load != load_number:
        events.append(
            context.event(
                ChangeType.ITEM_LOAD_CHANGED,
                field_changed="sub_inventory",
                old_value=old_load,
                new_value=load_number,
                source=context.load_detail_source,
                **common,
            )
        )

    # A first sync has no stored quantity to compare against.
    if row.ge_inv_qty is not None and item.quantity is not None and row.ge_inv_qty != item.quantity:
        events.append(
            context.event(
                ChangeType.ITEM_QTY_CHANGED,
                field_changed="inv_qty",
                old_value=str(row.ge_inv_qty),
                new_value=str(item.quantity),
                source=context.item_source,
                **common,
            )
        )

    if row.ge_orphaned:
        events.append(
            context.event(
                ChangeType.ITEM_APPEARED,
                field_changed="ge_orphaned",
                old_value=_bool_text(True),  # noqa: FBT003
                new_value=_bool_text(False),  # noqa: FBT003
                previous_state={"orphaned": True},
                current_state={
                    "availability_status": new_status,
                    "load_number": load_number,
                },
                source=context.item_source,
                **common,
            )
        )
    return events


def new_item_event(
    item: ExternalItem,
    *,
    load_number: str | None,
    cso: str | None,
    context: EventContext,
) -> ChangeEvent:
    return context.event(
        ChangeType.ITEM_APPEARED,
        serial=item.serial,
        model=item.model,
        load_number=load_number,
        cso=cso or None,
        current_state={
            "availability_status": item.availability_status,
            "availability_message": item.availability_message,
            "inv_qty": item.quantity,
            "load_number": load_number,
        },
        source=context.item_source,
    )


def detect_load_changes(
    stored: Mapping[str, LoadMetadata],
    incoming: Iterable[LoadInfo],
    *,
    context: EventContext,
) -> list[ChangeEvent]:
    """Diff load metadata.

    A load missing from the snapshot emits ``load_disappeared`` once; the planner then
    flags it so later runs stay quiet until it shows up again.
    """

    events: list[ChangeEvent] = []
    seen: set[str] = set()
    for load in incoming:
        if load.load_number in seen:
            continue
        seen.add(load.load_number)
        existing = stored.get(load.load_number)
        if existing is None or existing.ge_orphaned:
            events.append(
                context.event(
                    ChangeType.LOAD_APPEARED,
                    load_number=load.load_number,
                    cso=load.cso,
                    previous_state={"orphaned": True} if existing is not None else None,
                    current_state=_load_state(load),
                    source=context.load_data_source,
                )
            )
            continue
        events.extend(_diff_load(existing, load, context=context))

    for load_number, existing in stored.items():
        if load_number in seen or existing.ge_orphaned:
            continue
        events.append(
            context.event(
                ChangeType.LOAD_DISAPPEARED,
                load_number=load_number,
                cso=existing.ge_cso,
                previous_state={
                    "status": existing.ge_source_status,
                    "cso_status": existing.ge_cso_status,
                    "units": existing.ge_units,
                },
                source=context.load_data_source,
            )
        )
    return events


def _diff_load(
    existing: LoadMetadata,
    load: LoadInfo,
    *,
    context: EventContext,
) -> list[ChangeEvent]:
    events: list[ChangeEvent] = []
    common: dict[str, Any] = {
        "load_number": load.load_number,
        "cso": load.cso or existing.ge_cso,
        "source": context.load_data_source,
    }

    if is_sold(load.status) and not is_sold(existing.ge_source_status):
        events.append(
            context.event(
                ChangeType.LOAD_SOLD,
                field_changed="status",
                old_value=existing.ge_source_status,
                new_value=load.status,
                **common,
            )
        )
    if load.cso and load.cso != existing.ge_cso:
        events.append(
            context.event(
                ChangeType.LOAD_CSO_ASSIGNED,
                field_changed="cso",
                old_value=existing.ge_cso,
                new_value=load.cso,
                **common,
            )
        )
    if load.cso_status and load.cso_status != existing.ge_cso_status:
        events.append(
            context.event(
                ChangeType.LOAD_CSO_STATUS_CHANGED,
                field_changed="cso_status",
                old_value=existing.ge_cso_status,
                new_value=load.cso_status,
                **common,
            )
        )
    if load.units is not None and existing.ge_units is not None and load.units != existing.ge_units:
        events.append(
            context.event(
                ChangeType.LOAD_UNITS_CHANGED,
                field_changed="units",
                old_value=str(existing.ge_units),
                new_value=str(load.units),
                **common,
            )
        )
    return events


def _load_state(load: LoadInfo) -> dict[str, Any]:
    return {
        "status": load.status,
        "cso_status": load.cso_status,
        "units": load.units,
        "cso": load.cso,
        "submitted_date": load.submitted_date,
    }
