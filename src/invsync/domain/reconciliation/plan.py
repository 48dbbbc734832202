"""Pure planning of one bucket reconciliation.

Responsibilities of this stage:
- resolve every external item against the current rows
- collect change events from the detector and orphan tracker
- build write payloads for items, loads and placement conflicts
- compute run statistics

The planner performs no I/O and never mutates its inputs, so the same call can
back a dry-run preview and a committing run.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from invsync.domain.loads import count_loads, derive_friendly_name, expand_on_floor_loads
from invsync.domain.model import DEFAULT_ORPHAN_STATUS, ConflictKind, utcnow
from invsync.domain.products import UNKNOWN_PRODUCT

from .contracts import (
    LOAD_WRITE_FIELDS,
    ConflictItemResolution,
    ConflictPayload,
    DeferredItemResolution,
    EventContext,
    ItemPayload,
    LoadPayload,
    MatchedItemResolution,
)
from .detect import detect_item_changes, detect_load_changes, new_item_event
from .orphans import track_orphans
from .resolve import CurrentRowIndex, resolve_item

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from uuid import UUID

    from invsync.domain.model import (
        ChangeEvent,
        InventoryBucket,
        InventoryItem,
        LoadMetadata,
        SyncScope,
    )
    from invsync.domain.products import ProductLookup
    from invsync.domain.snapshot import ExternalItem, LoadInfo, Snapshot

log = getLogger(__name__)

# Stats that only make sense for the bucket that produced them.
BUCKET_EXCLUSIVE_STATS: frozenset[str] = frozenset({"for_sale_loads", "picked_loads"})


@dataclass(slots=True, kw_only=True)
class ReconciliationStats:
    total_external_items: int = 0
    items_in_loads: int = 0
    unassigned_items: int = 0
    new_items: int = 0
    updated_items: int = 0
    unchanged_items: int = 0
    orphaned_items: int = 0
    recovered_items: int = 0
    migrated_items: int = 0
    conflicts: int = 0
    load_conflicts: int = 0
    deferred_items: int = 0
    duplicate_serials: int = 0
    parse_warnings: int = 0
    for_sale_loads: int = 0
    picked_loads: int = 0
    changes_logged: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(slots=True, kw_only=True)
class ReconciliationPlan:
    """Everything a persister needs to bring one bucket in line with its snapshot."""

    scope: SyncScope
    bucket: InventoryBucket
    run_id: UUID | None
    created_at: datetime
    items_to_upsert: list[ItemPayload] = field(default_factory=list["ItemPayload"])
    orphan_ids: list[UUID] = field(default_factory=list["UUID"])
    changes: list[ChangeEvent] = field(default_factory=list["ChangeEvent"])
    loads_to_upsert: list[LoadPayload] = field(default_factory=list["LoadPayload"])
    conflicting_serials: list[str] = field(default_factory=list[str])
    conflicts: list[ConflictPayload] = field(default_factory=list[ConflictPayload])
    stats: ReconciliationStats = field(default_factory=ReconciliationStats)

    @property
    def inserts(self) -> list[ItemPayload]:
        return [payload for payload in self.items_to_upsert if payload.id is None]

    @property
    def updates(self) -> list[ItemPayload]:
        return [payload for payload in self.items_to_upsert if payload.id is not None]


def plan_reconciliation(  # noqa: PLR0913
    current_rows: Iterable[InventoryItem],
    snapshot: Snapshot,
    product_lookup: ProductLookup,
    *,
    scope: SyncScope,
    current_loads: Iterable[LoadMetadata] = (),
    run_id: UUID | None = None,
    now: datetime | None = None,
    orphan_status: str = DEFAULT_ORPHAN_STATUS,
) -> ReconciliationPlan:
    """Compute the upserts, orphan flags and change events for ``snapshot``.

    ``current_rows`` must contain the target bucket's rows, the rows of its
    migration-equivalent buckets, and any live row elsewhere sharing a snapshot
    serial (so conflicts can be detected).
    """

    bucket = snapshot.bucket
    context = EventContext(scope=scope, bucket=bucket, run_id=run_id, now=now or utcnow())
    rows = tuple(current_rows)
    index = CurrentRowIndex.build(rows, bucket)
    assignments = expand_on_floor_loads(snapshot)
    loads_by_number: dict[str, LoadInfo] = {}
    for load in snapshot.loads or ():
        loads_by_number.setdefault(load.load_number, load)

    plan = ReconciliationPlan(scope=scope, bucket=bucket, run_id=run_id, created_at=context.now)
    stats = plan.stats
    stats.total_external_items = len(snapshot.items)
    stats.parse_warnings = len(snapshot.warnings)
    if snapshot.loads is not None:
        stats.for_sale_loads, stats.picked_loads = count_loads(loads_by_number.values())
    for serial, other_load in assignments.conflicting_loads.items():
        plan.conflicts.append(
            ConflictPayload(
                kind=ConflictKind.LOAD,
                serial=serial,
                conflicting_with=other_load,
                load_number=assignments.load_for(serial),
            )
        )
    stats.load_conflicts = len(assignments.conflicting_loads)

    matched_ids: set[UUID] = set()
    processed: set[str] = set()
    for item in snapshot.items:
        if item.serial in processed:
            stats.duplicate_serials += 1
            log.warning("Serial %s repeated in %s snapshot; keeping first", item.serial, bucket)
            continue
        processed.add(item.serial)

        load_number = assignments.load_for(item.serial)
        if not snapshot.has_load_data:
            # Buckets without load exports carry the load on the item row itself.
            load_number = item.load_number
        if load_number:
            stats.items_in_loads += 1
        else:
            stats.unassigned_items += 1
        load = loads_by_number.get(load_number) if load_number else None

        resolution = resolve_item(item, index)
        if isinstance(resolution, ConflictItemResolution):
            stats.conflicts += 1
            plan.conflicting_serials.append(item.serial)
            holder = resolution.candidates[0]
            plan.conflicts.append(
                ConflictPayload(
                    kind=ConflictKind.BUCKET,
                    serial=item.serial,
                    conflicting_with=holder.bucket.value,
                )
            )
            log.warning(
                "Skipping %s serial %s: already live in %s (%s)",
                bucket,
                item.serial,
                holder.bucket,
                holder.id,
            )
            continue
        if isinstance(resolution, DeferredItemResolution):
            stats.deferred_items += 1
            continue

        if isinstance(resolution, MatchedItemResolution):
            row = resolution.target
            matched_ids.add(row.id)
            plan.changes.extend(
                detect_item_changes(
                    row,
                    item,
                    load_number=load_number,
                    context=context,
                    migrated=resolution.migrated,
                )
            )
            payload = _item_payload(
                item,
                row=row,
                scope=scope,
                bucket=bucket,
                load_number=load_number,
                load=load,
                product_lookup=product_lookup,
                orphan_status=orphan_status,
            )
            stats.migrated_items += int(resolution.migrated)
            stats.recovered_items += int(row.ge_orphaned)
            if payload.differs_from(row):
                plan.items_to_upsert.append(payload)
                stats.updated_items += 1
            else:
                stats.unchanged_items += 1
            continue

        payload = _item_payload(
            item,
            row=None,
            scope=scope,
            bucket=bucket,
            load_number=load_number,
            load=load,
            product_lookup=product_lookup,
            orphan_status=orphan_status,
        )
        plan.items_to_upsert.append(payload)
        plan.changes.append(
            new_item_event(item, load_number=load_number, cso=payload.cso, context=context)
        )
        stats.new_items += 1

    orphans = track_orphans(
        rows,
        matched_ids=matched_ids,
        seen_serials=processed,
        context=context,
    )
    plan.orphan_ids.extend(orphans.orphan_ids)
    plan.changes.extend(orphans.events)
    stats.orphaned_items = len(orphans.orphan_ids)

    if snapshot.loads is not None:
        stored_loads = {load.load_number: load for load in current_loads if load.bucket == bucket}
        plan.changes.extend(
            detect_load_changes(stored_loads, loads_by_number.values(), context=context)
        )
        plan.loads_to_upsert.extend(
            _load_payloads(stored_loads, loads_by_number, scope=scope, bucket=bucket)
        )
    return plan


def _item_payload(  # noqa: PLR0913
    item: ExternalItem,
    *,
    row: InventoryItem | None,
    scope: SyncScope,
    bucket: InventoryBucket,
    load_number: str | None,
    load: LoadInfo | None,
    product_lookup: ProductLookup,
    orphan_status: str,
) -> ItemPayload:
    product = product_lookup.find(item.model)
    product_id = product.product_id
    product_type = product.product_type
    if product is UNKNOWN_PRODUCT and row is not None:
        product_id = row.product_id
        product_type = row.product_type

    cso = load.cso if load is not None and load.cso else (row.cso if row is not None else "")
    return ItemPayload(
        id=row.id if row is not None else None,
        company_id=scope.company_id,
        location_id=scope.location_id,
        serial=item.serial,
        model=item.model,
        cso=cso,
        bucket=bucket,
        sub_inventory=load_number,
        qty=item.placement_qty,
        product_id=product_id,
        product_type=product_type,
        ge_model=item.model,
        ge_serial=None if item.synthetic_serial else item.serial,
        ge_inv_qty=item.quantity,
        ge_availability_status=item.availability_status,
        ge_availability_message=item.availability_message,
        ge_ordc=item.ordc,
        reset_status=(
            row is not None and row.ge_orphaned and row.status == orphan_status
        ),
    )


def _load_payloads(
    stored: dict[str, LoadMetadata],
    incoming: dict[str, LoadInfo],
    *,
    scope: SyncScope,
    bucket: InventoryBucket,
) -> list[LoadPayload]:
    payloads: list[LoadPayload] = []
    for load_number, load in incoming.items():
        existing = stored.get(load_number)
        payload = _merge_load(load, existing, scope=scope, bucket=bucket)
        if existing is None or _load_differs(payload, existing):
            payloads.append(payload)

    for load_number, existing in stored.items():
        if load_number in incoming or existing.ge_orphaned:
            continue
        stored_values = {name: getattr(existing, name) for name in LOAD_WRITE_FIELDS}
        stored_values["ge_orphaned"] = True
        payloads.append(
            LoadPayload(
                id=existing.id,
                company_id=scope.company_id,
                location_id=scope.location_id,
                bucket=bucket,
                load_number=load_number,
                **stored_values,
            )
        )
    return payloads


def _merge_load(
    load: LoadInfo,
    existing: LoadMetadata | None,
    *,
    scope: SyncScope,
    bucket: InventoryBucket,
) -> LoadPayload:
    """Incoming values win; blanks in the snapshot keep what is stored."""

    def pick(incoming: object, name: str) -> Any:
        if incoming is not None or existing is None:
            return incoming
        return getattr(existing, name)

    friendly_name = existing.friendly_name if existing is not None else None
    if not (friendly_name and friendly_name.strip()):
        friendly_name = derive_friendly_name(load.notes, load.status)

    return LoadPayload(
        id=existing.id if existing is not None else None,
        company_id=scope.company_id,
        location_id=scope.location_id,
        bucket=bucket,
        load_number=load.load_number,
        friendly_name=friendly_name,
        ge_source_status=pick(load.status, "ge_source_status"),
        ge_cso_status=pick(load.cso_status, "ge_cso_status"),
        ge_units=pick(load.units, "ge_units"),
        ge_notes=pick(load.notes, "ge_notes"),
        ge_submitted_date=pick(load.submitted_date, "ge_submitted_date"),
        ge_cso=pick(load.cso, "ge_cso"),
        ge_inv_org=pick(load.inv_org, "ge_inv_org"),
        ge_scanned_at=pick(load.scanned_at, "ge_scanned_at"),
        ge_orphaned=False,
    )


def _load_differs(payload: LoadPayload, existing: LoadMetadata) -> bool:
    return any(getattr(existing, name) != getattr(payload, name) for name in LOAD_WRITE_FIELDS)
