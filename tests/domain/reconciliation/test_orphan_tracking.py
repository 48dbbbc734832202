from __future__ import annotations

from invsync.domain.model import ChangeType, InventoryBucket
from invsync.domain.reconciliation import track_orphans
from tests.helpers.inventory import event_context, make_item


def test_unaccounted_rows_become_orphans() -> None:
    kept = make_item("S1")
    gone = make_item("S2", sub_inventory="L1", cso="C1")

    report = track_orphans(
        [kept, gone],
        matched_ids={kept.id},
        seen_serials={"S1"},
        context=event_context(),
    )

    assert report.orphan_ids == [gone.id]
    (event,) = report.events
    assert event.change_type is ChangeType.ITEM_DISAPPEARED
    assert event.serial == "S2"
    assert event.load_number == "L1"
    assert event.cso == "C1"
    assert event.previous_state == {
        "availability_status": "Available",
        "sub_inventory": "L1",
        "inv_qty": 1,
    }


def test_skipped_serials_are_not_orphaned() -> None:
    conflicted = make_item("S1")

    report = track_orphans(
        [conflicted],
        matched_ids=set(),
        seen_serials={"S1"},
        context=event_context(),
    )

    assert report.orphan_ids == []


def test_rows_outside_scope_of_the_bucket_are_ignored() -> None:
    rows = [
        make_item("S1", InventoryBucket.STA),
        make_item("S2", ge_orphaned=True),
        make_item(None),
    ]

    report = track_orphans(rows, matched_ids=set(), seen_serials=set(), context=event_context())

    assert report.orphan_ids == []
    assert report.events == []
