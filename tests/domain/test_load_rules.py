from __future__ import annotations

import pytest

from invsync.domain.loads import (
    count_loads,
    derive_friendly_name,
    expand_on_floor_loads,
    is_on_floor,
)
from invsync.domain.model import InventoryBucket
from invsync.domain.snapshot import LoadInfo
from tests.helpers.inventory import make_snapshot


@pytest.mark.parametrize(
    ("status", "cso_status", "expected"),
    [
        ("For Sale", None, True),
        ("  for sale ", None, True),
        ("Sold", "Picked", True),
        ("SOLD", "picked", True),
        ("Sold", "Delivered", False),
        ("Sold", None, False),
        (None, None, False),
    ],
)
def test_is_on_floor(status: str | None, cso_status: str | None, expected: bool) -> None:  # noqa: FBT001
    load = LoadInfo(load_number="L1", status=status, cso_status=cso_status)

    assert is_on_floor(load) is expected


def test_first_on_floor_load_wins_a_shared_serial() -> None:
    snapshot = make_snapshot(
        InventoryBucket.ASIS,
        loads=[
            LoadInfo(load_number="L1", status="Sold", cso_status="Delivered"),
            LoadInfo(load_number="L2", status="For Sale"),
            LoadInfo(load_number="L3", status="Sold", cso_status="Picked"),
        ],
        load_items={"L1": ["S1"], "L2": ["S1", "S2"], "L3": ["S1", "S3"]},
    )

    assignments = expand_on_floor_loads(snapshot)

    assert assignments.by_serial == {"S1": "L2", "S2": "L2", "S3": "L3"}
    assert assignments.conflicting_loads == {"S1": "L3"}
    assert assignments.load_for("S9") is None


def test_snapshot_without_loads_assigns_nothing() -> None:
    assignments = expand_on_floor_loads(make_snapshot(InventoryBucket.FG))

    assert assignments.by_serial == {}


def test_count_loads() -> None:
    loads = [
        LoadInfo(load_number="L1", status="For Sale"),
        LoadInfo(load_number="L2", status="For Sale"),
        LoadInfo(load_number="L3", status="Sold", cso_status="Picked"),
        LoadInfo(load_number="L4", status="Sold"),
    ]

    assert count_loads(loads) == (2, 1)
    assert count_loads(None) == (0, 0)


@pytest.mark.parametrize(
    ("notes", "status", "expected"),
    [
        ("letter b - back wall", "For Sale", "B"),
        ("AB 12 units", "For Sale", "AB"),
        ("Truck 5/12 pickup", None, "5/12"),
        ("deliver on the 5th", "For Sale", "5TH"),
        ("LETTER B", "Sold", None),
        ("   ", "For Sale", None),
        (None, "For Sale", None),
        ("mixed stock", "For Sale", None),
    ],
)
def test_derive_friendly_name(notes: str | None, status: str | None, expected: str | None) -> None:
    assert derive_friendly_name(notes, status) == expected
