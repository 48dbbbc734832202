"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from invsync.adapters.dms import build_snapshot_fetcher
from invsync.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork, is_started, startup
from invsync.config.sync import get_sync_config
from invsync.domain.activity import UnitOfWorkActivityReporter
from invsync.domain.model import SyncScope
from invsync.domain.ports.unit_of_work import ReconciliationUnitOfWork
from invsync.domain.reconciliation import ALL_TARGETS, BucketReconciler, SyncOrchestrator

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from invsync.config.sync import SyncConfig
    from invsync.domain.model import SyncTarget
    from invsync.domain.ports.fetching import SnapshotFetcher
    from invsync.domain.reconciliation import AggregateSyncResult, BucketSyncResult

UnitOfWorkFactory = Callable[[], ReconciliationUnitOfWork]


log = getLogger(__name__)


def build_orchestrator(
    *,
    fetcher: SnapshotFetcher | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    sync_config: SyncConfig | None = None,
) -> SyncOrchestrator:
    """Wire the configured adapters into a ready orchestrator."""

    if unit_of_work_factory is None and not is_started():
        startup()
    effective_fetcher = fetcher or build_snapshot_fetcher()
    effective_uow = unit_of_work_factory or SqlAlchemyUnitOfWork
    config = sync_config or get_sync_config()

    reconciler = BucketReconciler(
        fetcher=effective_fetcher,
        unit_of_work_factory=effective_uow,
        batch_size=config.batch_size,
        mark_orphans=config.mark_orphans,
        orphan_status=config.orphan_status,
    )
    return SyncOrchestrator(
        reconcile=reconciler.reconcile,
        activity=UnitOfWorkActivityReporter(effective_uow),
    )


def sync_target(
    target: SyncTarget,
    *,
    scope: SyncScope,
    run_id: UUID | None = None,
    dry_run: bool = False,
    orchestrator: SyncOrchestrator | None = None,
) -> BucketSyncResult:
    """Reconcile a single target for ``scope``."""

    active = orchestrator or build_orchestrator()
    log.info(
        "Starting %s sync for %s/%s (dry_run=%s)",
        target.value,
        scope.company_id,
        scope.location_id,
        dry_run,
    )
    result = active.run_target(target, scope=scope, run_id=run_id, dry_run=dry_run)
    log.info(
        "Finished %s sync: success=%s, new=%s, updated=%s, orphaned=%s, changes=%s",
        target.value,
        result.success,
        result.stats.new_items,
        result.stats.updated_items,
        result.stats.orphaned_items,
        result.changes_logged,
    )
    return result


def sync_all(
    *,
    scope: SyncScope,
    run_id: UUID | None = None,
    dry_run: bool = False,
    targets: Iterable[SyncTarget] = ALL_TARGETS,
    orchestrator: SyncOrchestrator | None = None,
) -> AggregateSyncResult:
    """Reconcile every requested target in lifecycle order."""

    active = orchestrator or build_orchestrator()
    log.info(
        "Starting unified sync for %s/%s (dry_run=%s)",
        scope.company_id,
        scope.location_id,
        dry_run,
    )
    return active.run_all(scope=scope, run_id=run_id, dry_run=dry_run, targets=targets)


def preview_target(
    target: SyncTarget,
    *,
    scope: SyncScope,
    orchestrator: SyncOrchestrator | None = None,
) -> BucketSyncResult:
    """Compute what a sync of ``target`` would change without writing anything."""

    return sync_target(target, scope=scope, dry_run=True, orchestrator=orchestrator)


def scope_for(company_id: str, location_id: str) -> SyncScope:
    return SyncScope(company_id=company_id, location_id=location_id)
