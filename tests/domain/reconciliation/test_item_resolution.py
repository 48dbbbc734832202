from __future__ import annotations

import pytest

from invsync.domain.model import InventoryBucket
from invsync.domain.reconciliation import (
    ConflictItemResolution,
    CurrentRowIndex,
    DeferredItemResolution,
    MatchedItemResolution,
    NewItemResolution,
    resolve_item,
)
from tests.helpers.inventory import external, make_item

ASIS = InventoryBucket.ASIS
STA = InventoryBucket.STA
FG = InventoryBucket.FG


def test_unknown_serial_resolves_new() -> None:
    index = CurrentRowIndex.build([make_item("OTHER")], ASIS)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, NewItemResolution)


def test_row_in_target_bucket_matches_without_migration() -> None:
    row = make_item("S1", ASIS)
    index = CurrentRowIndex.build([row], ASIS)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, MatchedItemResolution)
    assert resolution.target is row
    assert resolution.migrated is False


def test_earlier_bucket_row_migrates_forward() -> None:
    row = make_item("S1", ASIS)
    index = CurrentRowIndex.build([row], STA)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, MatchedItemResolution)
    assert resolution.target is row
    assert resolution.migrated is True


def test_live_later_bucket_row_defers_import() -> None:
    holder = make_item("S1", STA)
    index = CurrentRowIndex.build([holder], ASIS)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, DeferredItemResolution)
    assert resolution.holder is holder


def test_orphaned_later_bucket_row_migrates_back() -> None:
    row = make_item("S1", STA, ge_orphaned=True)
    index = CurrentRowIndex.build([row], ASIS)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, MatchedItemResolution)
    assert resolution.migrated is True
    assert resolution.reason == "orphan_migration"


def test_live_row_in_unrelated_bucket_is_a_conflict() -> None:
    fg_row = make_item("S1", FG)
    index = CurrentRowIndex.build([fg_row], ASIS)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, ConflictItemResolution)
    assert resolution.candidates == (fg_row,)


def test_orphaned_row_in_unrelated_bucket_does_not_block() -> None:
    index = CurrentRowIndex.build([make_item("S1", FG, ge_orphaned=True)], ASIS)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, NewItemResolution)


def test_target_bucket_row_preferred_over_equivalent_row() -> None:
    asis_row = make_item("S1", ASIS)
    sta_row = make_item("S1", STA)
    index = CurrentRowIndex.build([asis_row, sta_row], STA)

    resolution = resolve_item(external("S1"), index)

    assert isinstance(resolution, MatchedItemResolution)
    assert resolution.target is sta_row
    assert resolution.migrated is False


def test_rows_without_serial_are_not_indexed() -> None:
    index = CurrentRowIndex.build([make_item(None, ASIS), make_item("", FG)], ASIS)

    assert index.equivalent == {}
    assert index.foreign == {}


def test_duplicate_rows_keep_the_first(caplog: pytest.LogCaptureFixture) -> None:
    first = make_item("S1", ASIS)
    second = make_item("S1", ASIS)

    index = CurrentRowIndex.build([first, second], ASIS)

    assert index.equivalent["S1"] is first
    assert "Duplicate ASIS rows for serial S1" in caplog.text


def test_conflict_requires_candidates() -> None:
    with pytest.raises(ValueError, match="at least one candidate"):
        ConflictItemResolution(candidates=())
