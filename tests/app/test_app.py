from __future__ import annotations

import logging
from uuid import uuid4

import pytest

from invsync.app import build_orchestrator, preview_target, scope_for, sync_all, sync_target
from invsync.config.sync import SyncConfig
from invsync.domain.model import InventoryBucket, SyncTarget
from invsync.domain.ports.fetching import FetchError
from tests.helpers.inventory import (
    SCOPE,
    FakeUnitOfWorkFactory,
    StaticFetcher,
    external,
    make_item,
    make_snapshot,
)

ASIS = InventoryBucket.ASIS


def test_sync_target_runs_through_the_wired_adapters(caplog: pytest.LogCaptureFixture) -> None:
    factory = FakeUnitOfWorkFactory()
    fetcher = StaticFetcher({ASIS: make_snapshot(ASIS, [external("S1")])})
    orchestrator = build_orchestrator(fetcher=fetcher, unit_of_work_factory=factory)
    run_id = uuid4()

    with caplog.at_level(logging.INFO, logger="invsync.app"):
        result = sync_target(
            SyncTarget.ASIS, scope=SCOPE, run_id=run_id, orchestrator=orchestrator
        )

    assert result.success is True
    assert result.target is SyncTarget.ASIS
    assert factory.store.by_serial("S1")
    (entry,) = factory.store.activity
    assert entry.action == "asis_sync"
    assert entry.run_id == run_id
    assert (
        "Finished asis sync: success=True, new=1, updated=0, orphaned=0, changes=1"
        in caplog.messages
    )


def test_sync_config_reaches_the_reconciler() -> None:
    factory = FakeUnitOfWorkFactory()
    factory.store.add_items(make_item("S1"))
    orchestrator = build_orchestrator(
        fetcher=StaticFetcher({ASIS: make_snapshot(ASIS)}),
        unit_of_work_factory=factory,
        sync_config=SyncConfig(batch_size=10, mark_orphans=False),
    )

    result = sync_target(SyncTarget.ASIS, scope=SCOPE, orchestrator=orchestrator)

    assert result.stats.orphaned_items == 1
    (s1,) = factory.store.by_serial("S1")
    assert s1.ge_orphaned is False


def test_preview_leaves_no_trace() -> None:
    factory = FakeUnitOfWorkFactory()
    orchestrator = build_orchestrator(
        fetcher=StaticFetcher({ASIS: make_snapshot(ASIS, [external("S1")])}),
        unit_of_work_factory=factory,
    )

    result = preview_target(SyncTarget.ASIS, scope=SCOPE, orchestrator=orchestrator)

    assert result.dry_run is True
    assert result.items_to_upsert == 1
    assert factory.store.items == {}
    assert factory.store.activity == []


def test_sync_all_isolates_failing_targets() -> None:
    factory = FakeUnitOfWorkFactory()
    fetcher = StaticFetcher(
        {
            InventoryBucket.FG: FetchError("FG export offline"),
            ASIS: make_snapshot(ASIS, [external("S1")]),
        }
    )
    orchestrator = build_orchestrator(fetcher=fetcher, unit_of_work_factory=factory)

    aggregate = sync_all(
        scope=scope_for(SCOPE.company_id, SCOPE.location_id),
        targets=[SyncTarget.ASIS, SyncTarget.FG],
        orchestrator=orchestrator,
    )

    assert aggregate.success is False
    assert list(aggregate.results) == [SyncTarget.FG, SyncTarget.ASIS]
    assert aggregate.results[SyncTarget.ASIS].success is True
    assert aggregate.error == "fg: FG export offline"
    (entry,) = factory.store.activity
    assert entry.action == "unified_sync"
    assert entry.success is False
