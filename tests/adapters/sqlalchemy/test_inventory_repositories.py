from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import uuid4

import pytest

from invsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyActivityLogRepository,
    SqlAlchemyChangeEventRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyInventoryItemRepository,
    SqlAlchemyLoadRepository,
    SqlAlchemyProductRepository,
)
from invsync.domain.model import (
    ActivityLogEntry,
    ChangeType,
    ConflictKind,
    ConflictStatus,
    InventoryBucket,
    InventoryItem,
    Product,
    SyncScope,
)
from invsync.domain.ports.persistence import StorageError
from invsync.domain.products import ProductLookup
from invsync.domain.reconciliation import ConflictPayload, plan_reconciliation
from invsync.domain.snapshot import LoadInfo
from tests.helpers.inventory import (
    NOW,
    SCOPE,
    event_context,
    external,
    make_item,
    make_load,
    make_snapshot,
)

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

ASIS = InventoryBucket.ASIS
STA = InventoryBucket.STA
LATER = datetime(2025, 3, 2, 8, 30, tzinfo=UTC)


def _persist(session: Session, *items: InventoryItem) -> None:
    session.add_all(items)
    session.commit()


def test_list_for_buckets_is_scoped(sqlite_session: Session) -> None:
    other_scope = make_item("S9", company_id="other")
    _persist(
        sqlite_session,
        make_item("S1", ASIS),
        make_item("S2", STA),
        make_item("S3", InventoryBucket.FG),
        other_scope,
    )
    repo = SqlAlchemyInventoryItemRepository(sqlite_session)

    rows = repo.list_for_buckets(SCOPE, {ASIS, STA})

    assert {row.serial for row in rows} == {"S1", "S2"}
    assert repo.list_for_buckets(SCOPE, set()) == []


def test_list_by_serials_excludes_buckets(sqlite_session: Session) -> None:
    _persist(sqlite_session, make_item("S1", ASIS), make_item("S2", InventoryBucket.FG))
    repo = SqlAlchemyInventoryItemRepository(sqlite_session)

    rows = repo.list_by_serials(SCOPE, {"S1", "S2", "S3"}, exclude_buckets={ASIS, STA})

    assert [row.serial for row in rows] == ["S2"]
    assert rows[0].bucket is InventoryBucket.FG


def test_insert_then_update_preserves_workflow_columns(sqlite_session: Session) -> None:
    repo = SqlAlchemyInventoryItemRepository(sqlite_session)
    first = plan_reconciliation(
        [], make_snapshot(ASIS, [external("S1")]), ProductLookup(), scope=SCOPE, now=NOW
    )
    repo.insert_many(first.inserts, now=NOW)
    sqlite_session.commit()

    (stored,) = repo.list_for_buckets(SCOPE, {ASIS})
    assert stored.is_scanned is False
    assert stored.created_at == NOW
    stored.is_scanned = True
    stored.notes = "bay 4"
    sqlite_session.commit()

    second = plan_reconciliation(
        [stored],
        make_snapshot(ASIS, [external("S1", availability_status="Damaged", quantity=2)]),
        ProductLookup(),
        scope=SCOPE,
        now=LATER,
    )
    assert repo.update_many(second.updates, now=LATER) == 1
    sqlite_session.commit()
    sqlite_session.expire_all()

    (updated,) = repo.list_for_buckets(SCOPE, {ASIS})
    assert updated.id == stored.id
    assert updated.ge_availability_status == "Damaged"
    assert updated.qty == 2
    assert updated.is_scanned is True
    assert updated.notes == "bay 4"
    assert updated.updated_at == LATER
    assert updated.created_at == NOW


def test_mark_orphaned_and_recover(sqlite_session: Session) -> None:
    row = make_item("S1", status=None)
    _persist(sqlite_session, row)
    repo = SqlAlchemyInventoryItemRepository(sqlite_session)

    repo.mark_orphaned([row.id], at=NOW, status="NOT_IN_GE")
    sqlite_session.commit()
    sqlite_session.expire_all()
    (orphaned,) = repo.list_for_buckets(SCOPE, {ASIS})
    assert orphaned.ge_orphaned is True
    assert orphaned.ge_orphaned_at == NOW
    assert orphaned.status == "NOT_IN_GE"

    plan = plan_reconciliation(
        [orphaned], make_snapshot(ASIS, [external("S1")]), ProductLookup(), scope=SCOPE, now=LATER
    )
    repo.update_many(plan.updates, now=LATER)
    sqlite_session.commit()
    sqlite_session.expire_all()
    (recovered,) = repo.list_for_buckets(SCOPE, {ASIS})
    assert recovered.ge_orphaned is False
    assert recovered.ge_orphaned_at is None
    assert recovered.status is None


def test_change_events_round_trip(sqlite_session: Session) -> None:
    repo = SqlAlchemyChangeEventRepository(sqlite_session)
    run_id = uuid4()
    event = event_context(run_id=run_id).event(
        ChangeType.ITEM_DISAPPEARED,
        serial="S1",
        previous_state={"availability_status": "Available", "inv_qty": 1},
        source="ASIS",
    )

    assert repo.add_many([event]) == 1
    sqlite_session.commit()
    sqlite_session.expire_all()

    (stored,) = repo.list_for_scope(SCOPE)
    assert stored.change_type is ChangeType.ITEM_DISAPPEARED
    assert stored.bucket is ASIS
    assert stored.run_id == run_id
    assert stored.previous_state == {"availability_status": "Available", "inv_qty": 1}
    assert repo.list_for_scope(SyncScope(company_id="other", location_id="x")) == []


def test_load_upsert_inserts_and_updates(sqlite_session: Session) -> None:
    repo = SqlAlchemyLoadRepository(sqlite_session)
    snapshot = make_snapshot(
        ASIS, loads=[LoadInfo(load_number="L1", status="For Sale", notes="LETTER E")]
    )
    first = plan_reconciliation([], snapshot, ProductLookup(), scope=SCOPE, now=NOW)

    assert repo.upsert_many(first.loads_to_upsert, now=NOW) == 1
    sqlite_session.commit()
    (stored,) = repo.list_for_bucket(SCOPE, ASIS)
    assert stored.status == "active"
    assert stored.friendly_name == "E"

    sold = make_snapshot(
        ASIS, loads=[LoadInfo(load_number="L1", status="Sold", cso="C5", units=3)]
    )
    second = plan_reconciliation(
        [], sold, ProductLookup(), scope=SCOPE, now=LATER, current_loads=[stored]
    )
    repo.upsert_many(second.loads_to_upsert, now=LATER)
    sqlite_session.commit()
    sqlite_session.expire_all()

    (updated,) = repo.list_for_bucket(SCOPE, ASIS)
    assert updated.id == stored.id
    assert updated.ge_source_status == "Sold"
    assert updated.ge_cso == "C5"
    assert updated.ge_notes == "LETTER E"
    assert updated.friendly_name == "E"
    assert repo.list_for_bucket(SCOPE, STA) == []


def test_load_number_is_unique_per_bucket(sqlite_session: Session) -> None:
    sqlite_session.add(make_load("L1"))
    sqlite_session.commit()
    repo = SqlAlchemyLoadRepository(sqlite_session)
    snapshot = make_snapshot(ASIS, loads=[LoadInfo(load_number="L1")])
    plan = plan_reconciliation([], snapshot, ProductLookup(), scope=SCOPE, now=NOW)

    with pytest.raises(StorageError, match="load upsert failed"):
        repo.upsert_many(plan.loads_to_upsert, now=NOW)


def test_products_by_company(sqlite_session: Session) -> None:
    repo = SqlAlchemyProductRepository(sqlite_session)
    repo.add(Product(company_id="acme", model="GTW485", product_type="Washer"))
    repo.add(Product(company_id="other", model="GTD45", product_type="Dryer"))
    sqlite_session.commit()

    products = repo.list_for_company("acme")

    assert [product.model for product in products] == ["GTW485"]


def test_activity_log_tracks_runs(sqlite_session: Session) -> None:
    repo = SqlAlchemyActivityLogRepository(sqlite_session)
    run_id = uuid4()
    repo.add(
        ActivityLogEntry(
            company_id=SCOPE.company_id,
            location_id=SCOPE.location_id,
            action="asis_sync",
            success=True,
            run_id=run_id,
            details={"stats": {"new_items": 1}},
        )
    )
    sqlite_session.commit()

    assert repo.has_run(run_id) is True
    assert repo.has_run(uuid4()) is False
    (entry,) = repo.list_for_scope(SCOPE)
    assert entry.details == {"stats": {"new_items": 1}}


def test_conflicts_open_resolve_and_reopen(sqlite_session: Session) -> None:
    repo = SqlAlchemyConflictRepository(sqlite_session)
    bucket_conflict = ConflictPayload(
        kind=ConflictKind.BUCKET, serial="S1", conflicting_with="FG"
    )
    load_conflict = ConflictPayload(
        kind=ConflictKind.LOAD, serial="S2", conflicting_with="L2", load_number="L1"
    )

    first = repo.sync_open(SCOPE, ASIS, [bucket_conflict, load_conflict], now=NOW)
    sqlite_session.commit()
    assert (first.opened, first.resolved) == (2, 0)

    again = repo.sync_open(SCOPE, ASIS, [bucket_conflict, load_conflict], now=LATER)
    sqlite_session.commit()
    assert (again.opened, again.resolved) == (0, 0)

    cleared = repo.sync_open(SCOPE, ASIS, [load_conflict], now=LATER)
    sqlite_session.commit()
    assert (cleared.opened, cleared.resolved) == (0, 1)
    by_serial = {conflict.serial: conflict for conflict in repo.list_for_bucket(SCOPE, ASIS)}
    assert by_serial["S1"].status is ConflictStatus.RESOLVED
    assert by_serial["S1"].resolved_at == LATER
    assert by_serial["S2"].is_open
    assert by_serial["S2"].load_number == "L1"
    assert by_serial["S2"].detected_at == NOW

    back = repo.sync_open(SCOPE, ASIS, [bucket_conflict, load_conflict], now=LATER)
    sqlite_session.commit()
    assert (back.opened, back.resolved) == (1, 0)
    conflicts = repo.list_for_bucket(SCOPE, ASIS)
    assert len(conflicts) == 2
    assert all(conflict.is_open for conflict in conflicts)
    assert repo.list_for_bucket(SCOPE, STA) == []
