from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from invsync.domain.model import ConflictKind, ConflictStatus, InventoryBucket
from invsync.domain.products import ProductLookup
from invsync.domain.reconciliation import (
    PersistenceError,
    dedupe_by_id,
    persist_plan,
    plan_reconciliation,
)
from invsync.domain.snapshot import LoadInfo
from tests.helpers.inventory import (
    NOW,
    SCOPE,
    FakeUnitOfWork,
    InMemoryStore,
    external,
    make_item,
    make_snapshot,
)

if TYPE_CHECKING:
    from invsync.domain.reconciliation import ReconciliationPlan

ASIS = InventoryBucket.ASIS


def _seeded_store() -> InMemoryStore:
    store = InMemoryStore()
    store.add_items(
        make_item("S1", is_scanned=True, notes="left dock", scanned_by="alex"),
        make_item("S2"),
    )
    return store


def _plan_for(
    store: InMemoryStore,
    *serials: str,
    loads: list[LoadInfo] | None = None,
) -> ReconciliationPlan:
    snapshot = make_snapshot(
        ASIS,
        [external(serial, quantity=5) for serial in serials],
        loads=loads,
    )
    return plan_reconciliation(
        list(store.items.values()), snapshot, ProductLookup(), scope=SCOPE, now=NOW
    )


def test_plan_is_written_in_batches() -> None:
    store = _seeded_store()
    plan = _plan_for(store, "S1", "S3", "S4", loads=[LoadInfo(load_number="L1")])
    uow = FakeUnitOfWork(store)

    result = persist_plan(uow, plan, batch_size=1, now=NOW)

    assert result.committed is True
    assert result.items_inserted == 2
    assert result.items_updated == 1
    assert result.items_orphaned == 1
    assert result.loads_written == 1
    assert result.changes_logged == len(plan.changes)
    # one commit per batch of every step, plus one for the conflict sync
    assert uow.commits == len(plan.changes) + 1 + 2 + 1 + 1 + 1
    assert {item.serial for item in store.items.values()} == {"S1", "S2", "S3", "S4"}
    (s2,) = store.by_serial("S2")
    assert s2.ge_orphaned is True
    assert s2.status == "NOT_IN_GE"
    assert s2.ge_orphaned_at == NOW


def test_update_keeps_workflow_fields() -> None:
    store = _seeded_store()
    plan = _plan_for(store, "S1", "S2")

    persist_plan(FakeUnitOfWork(store), plan, now=NOW)

    (s1,) = store.by_serial("S1")
    assert s1.ge_inv_qty == 5
    assert s1.is_scanned is True
    assert s1.notes == "left dock"
    assert s1.scanned_by == "alex"


def test_failed_change_batch_is_skipped() -> None:
    store = _seeded_store()
    plan = _plan_for(store, "S1", "S3")
    uow = FakeUnitOfWork(store, fail_change_batches=1)

    result = persist_plan(uow, plan, batch_size=1, now=NOW)

    assert result.committed is True
    assert result.failed_change_batches == 1
    assert result.changes_logged == len(plan.changes) - 1
    assert uow.rollbacks == 1
    assert store.by_serial("S3")


def test_failed_item_batch_aborts_after_earlier_commits() -> None:
    store = _seeded_store()
    plan = _plan_for(store, "S1", "S3")
    uow = FakeUnitOfWork(store, fail_on={"update"})

    with pytest.raises(PersistenceError) as excinfo:
        persist_plan(uow, plan, now=NOW)

    assert excinfo.value.step == "item update"
    assert excinfo.value.bucket is ASIS
    assert excinfo.value.batch_index == 0
    assert uow.rollbacks == 1
    # inserts ran (and committed) before the failing update step
    assert store.by_serial("S3")
    (s2,) = store.by_serial("S2")
    assert s2.ge_orphaned is False


def test_orphans_only_reported_when_marking_disabled() -> None:
    store = _seeded_store()
    plan = _plan_for(store, "S1")

    result = persist_plan(FakeUnitOfWork(store), plan, mark_orphans=False, now=NOW)

    assert result.items_orphaned == 0
    (s2,) = store.by_serial("S2")
    assert s2.ge_orphaned is False
    assert plan.orphan_ids == [s2.id]


def test_custom_orphan_status() -> None:
    store = _seeded_store()
    plan = _plan_for(store, "S1")

    persist_plan(FakeUnitOfWork(store), plan, orphan_status="MISSING", now=NOW)

    (s2,) = store.by_serial("S2")
    assert s2.status == "MISSING"


def test_batch_size_must_be_positive() -> None:
    store = _seeded_store()

    with pytest.raises(ValueError, match="batch_size"):
        persist_plan(FakeUnitOfWork(store), _plan_for(store, "S1"), batch_size=0)


def test_dedupe_by_id_keeps_last(caplog: pytest.LogCaptureFixture) -> None:
    store = _seeded_store()
    first = _plan_for(store, "S1").updates[0]
    second = _plan_for(store, "S1", "S1").updates[0]
    other = [p for p in _plan_for(store, "S1", "S2").updates if p.serial == "S2"]

    payloads, duplicates = dedupe_by_id([first, *other, second])

    assert duplicates == 1
    assert payloads[0] is second
    assert "Duplicate upsert" in caplog.text


def test_conflicts_are_opened_and_later_resolved() -> None:
    store = _seeded_store()
    store.add_items(make_item("S9", InventoryBucket.FG))
    uow = FakeUnitOfWork(store)

    first = persist_plan(uow, _plan_for(store, "S1", "S9"), now=NOW)

    assert first.conflicts_opened == 1
    (conflict,) = store.conflicts
    assert conflict.kind is ConflictKind.BUCKET
    assert conflict.serial == "S9"
    assert conflict.conflicting_with == "FG"
    assert conflict.status is ConflictStatus.OPEN

    second = persist_plan(uow, _plan_for(store, "S1"), now=NOW)

    assert second.conflicts_opened == 0
    assert second.conflicts_resolved == 1
    assert conflict.status is ConflictStatus.RESOLVED
    assert conflict.resolved_at == NOW


def test_failed_conflict_sync_aborts_after_item_writes() -> None:
    store = _seeded_store()
    plan = _plan_for(store, "S1", "S3")
    uow = FakeUnitOfWork(store, fail_on={"conflict"})

    with pytest.raises(PersistenceError) as excinfo:
        persist_plan(uow, plan, now=NOW)

    assert excinfo.value.step == "conflict sync"
    assert uow.rollbacks == 1
    assert store.by_serial("S3")
