"""Single-bucket reconciliation: fetch, read the store, plan, persist.

The reconciler composes a snapshot fetcher, a unit of work and the plan/persist
stages without knowing which adapters back them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from invsync.domain.model import DEFAULT_ORPHAN_STATUS, equivalence_class, utcnow
from invsync.domain.products import ProductLookup

from .persist import DEFAULT_BATCH_SIZE, persist_plan
from .plan import ReconciliationStats, plan_reconciliation

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime
    from uuid import UUID

    from invsync.domain.model import InventoryBucket, InventoryItem, SyncScope, SyncTarget
    from invsync.domain.ports.fetching import SnapshotFetcher
    from invsync.domain.ports.unit_of_work import ReconciliationUnitOfWork
    from invsync.domain.snapshot import Snapshot

    from .persist import PersistReconciliation
    from .plan import ReconciliationPlan

log = getLogger(__name__)


@dataclass(slots=True, kw_only=True)
class BucketSyncResult:
    """Outcome of reconciling one bucket."""

    bucket: InventoryBucket
    success: bool
    stats: ReconciliationStats = field(default_factory=ReconciliationStats)
    target: SyncTarget | None = None
    run_id: UUID | None = None
    dry_run: bool = False
    changes_logged: int = 0
    failed_change_batches: int = 0
    items_to_upsert: int = 0
    orphan_ids: list[UUID] = field(default_factory=list["UUID"])
    conflicting_serials: list[str] = field(default_factory=list[str])
    conflicts_opened: int = 0
    conflicts_resolved: int = 0
    error: str | None = None
    duration_seconds: float = 0.0

    @classmethod
    def failed(
        cls,
        bucket: InventoryBucket,
        *,
        error: str,
        target: SyncTarget | None = None,
        run_id: UUID | None = None,
        duration_seconds: float = 0.0,
    ) -> BucketSyncResult:
        return cls(
            bucket=bucket,
            success=False,
            target=target,
            run_id=run_id,
            error=error,
            duration_seconds=duration_seconds,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "bucket": self.bucket.value,
            "target": self.target.value if self.target is not None else None,
            "success": self.success,
            "dry_run": self.dry_run,
            "run_id": str(self.run_id) if self.run_id is not None else None,
            "stats": self.stats.to_dict(),
            "changes_logged": self.changes_logged,
            "failed_change_batches": self.failed_change_batches,
            "items_to_upsert": self.items_to_upsert,
            "orphan_ids": [str(orphan_id) for orphan_id in self.orphan_ids],
            "conflicting_serials": list(self.conflicting_serials),
            "conflicts_opened": self.conflicts_opened,
            "conflicts_resolved": self.conflicts_resolved,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass(slots=True)
class BucketReconciler:
    """Run one bucket's read-compute-write cycle."""

    fetcher: SnapshotFetcher
    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork]
    batch_size: int = DEFAULT_BATCH_SIZE
    mark_orphans: bool = True
    orphan_status: str = DEFAULT_ORPHAN_STATUS
    persist: PersistReconciliation = persist_plan
    clock: Callable[[], datetime] = utcnow

    def reconcile(
        self,
        bucket: InventoryBucket,
        *,
        scope: SyncScope,
        run_id: UUID | None = None,
        dry_run: bool = False,
    ) -> BucketSyncResult:
        """Reconcile ``bucket`` for ``scope``.

        ``FetchError`` is raised before anything is read or written;
        ``PersistenceError`` leaves already committed batches in place.
        """

        started = time.monotonic()
        snapshot = self.fetcher(scope=scope, bucket=bucket)
        _log_parse_warnings(snapshot)

        now = self.clock()
        with self.unit_of_work_factory() as uow:
            plan = self._plan(uow, snapshot, scope=scope, run_id=run_id, now=now)
            changes_logged = 0
            failed_change_batches = 0
            conflicts_opened = 0
            conflicts_resolved = 0
            if not dry_run:
                persisted = self.persist(
                    uow,
                    plan,
                    batch_size=self.batch_size,
                    mark_orphans=self.mark_orphans,
                    orphan_status=self.orphan_status,
                    now=now,
                )
                changes_logged = persisted.changes_logged
                failed_change_batches = persisted.failed_change_batches
                conflicts_opened = persisted.conflicts_opened
                conflicts_resolved = persisted.conflicts_resolved

        plan.stats.changes_logged = changes_logged
        result = BucketSyncResult(
            bucket=bucket,
            success=True,
            stats=plan.stats,
            run_id=run_id,
            dry_run=dry_run,
            changes_logged=changes_logged,
            failed_change_batches=failed_change_batches,
            items_to_upsert=len(plan.items_to_upsert),
            orphan_ids=list(plan.orphan_ids),
            conflicting_serials=list(plan.conflicting_serials),
            conflicts_opened=conflicts_opened,
            conflicts_resolved=conflicts_resolved,
            duration_seconds=time.monotonic() - started,
        )
        log.info(
            "%s %s: external=%s new=%s updated=%s orphaned=%s conflicts=%s changes=%s",
            "Previewed" if dry_run else "Reconciled",
            bucket,
            plan.stats.total_external_items,
            plan.stats.new_items,
            plan.stats.updated_items,
            plan.stats.orphaned_items,
            plan.stats.conflicts,
            len(plan.changes),
        )
        return result

    def _plan(
        self,
        uow: ReconciliationUnitOfWork,
        snapshot: Snapshot,
        *,
        scope: SyncScope,
        run_id: UUID | None,
        now: datetime,
    ) -> ReconciliationPlan:
        repositories = uow.repositories
        bucket = snapshot.bucket
        equivalent = equivalence_class(bucket)

        rows: list[InventoryItem] = list(repositories.items.list_for_buckets(scope, equivalent))
        serials = {item.serial for item in snapshot.items}
        if serials:
            rows.extend(
                repositories.items.list_by_serials(scope, serials, exclude_buckets=equivalent)
            )
        loads = repositories.loads.list_for_bucket(scope, bucket) if snapshot.has_load_data else []
        lookup = ProductLookup.from_products(
            repositories.products.list_for_company(scope.company_id)
        )
        return plan_reconciliation(
            rows,
            snapshot,
            lookup,
            scope=scope,
            current_loads=loads,
            run_id=run_id,
            now=now,
            orphan_status=self.orphan_status,
        )


def _log_parse_warnings(snapshot: Snapshot) -> None:
    if not snapshot.warnings:
        return
    log.warning(
        "%s snapshot had %s parse warnings; values were defaulted",
        snapshot.bucket,
        len(snapshot.warnings),
    )
    for warning in snapshot.warnings:
        log.debug(
            "%s row %s field %s=%r: %s",
            warning.source,
            warning.row_index,
            warning.field,
            warning.raw_value,
            warning.message,
        )
