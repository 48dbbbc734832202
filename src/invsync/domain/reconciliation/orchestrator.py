"""Sequencing of bucket syncs and aggregation of their results.

Responsibilities of this stage:
- run FG, ASIS and STA in lifecycle order, then the independent buckets
- isolate bucket failures so siblings still run
- aggregate per-bucket stats into one result
- refuse reused run tokens and report every invocation to the activity log
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields
from logging import getLogger
from typing import TYPE_CHECKING, Any, Protocol

from invsync.domain.model import ActivityLogEntry, InventoryBucket, SyncTarget, new_id
from invsync.domain.ports.persistence import StorageError

from .engine import BucketSyncResult
from .errors import DuplicateRunError
from .plan import BUCKET_EXCLUSIVE_STATS, ReconciliationStats

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from invsync.domain.activity import ActivityReporter
    from invsync.domain.model import SyncScope

log = getLogger(__name__)

# Migration between ASIS and STA needs FG settled first and ASIS before STA.
ORDERED_TARGETS: tuple[SyncTarget, ...] = (SyncTarget.FG, SyncTarget.ASIS, SyncTarget.STA)
INDEPENDENT_TARGETS: tuple[SyncTarget, ...] = (
    SyncTarget.INBOUND,
    SyncTarget.BACKHAUL,
    SyncTarget.ORDERS,
)
ALL_TARGETS: tuple[SyncTarget, ...] = ORDERED_TARGETS + INDEPENDENT_TARGETS

UNIFIED_ACTION = "unified_sync"
# Load counters are only reported by the ASIS export.
LOAD_STATS_BUCKET = InventoryBucket.ASIS


class RunBucket(Protocol):
    def __call__(
        self,
        bucket: InventoryBucket,
        *,
        scope: SyncScope,
        run_id: UUID | None = None,
        dry_run: bool = False,
    ) -> BucketSyncResult: ...


@dataclass(slots=True, kw_only=True)
class AggregateSyncResult:
    """Outcome of a unified run across every target."""

    run_id: UUID | None
    success: bool
    results: dict[SyncTarget, BucketSyncResult] = field(
        default_factory=dict[SyncTarget, BucketSyncResult]
    )
    stats: ReconciliationStats = field(default_factory=ReconciliationStats)
    error: str | None = None
    dry_run: bool = False
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": str(self.run_id) if self.run_id is not None else None,
            "success": self.success,
            "dry_run": self.dry_run,
            "stats": self.stats.to_dict(),
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
            "results": {target.value: result.to_dict() for target, result in self.results.items()},
        }


def aggregate_stats(results: Iterable[BucketSyncResult]) -> ReconciliationStats:
    """Sum the cross-bucket counters; load counters come from ASIS untouched."""

    total = ReconciliationStats()
    summed = [f.name for f in fields(ReconciliationStats) if f.name not in BUCKET_EXCLUSIVE_STATS]
    for result in results:
        for name in summed:
            setattr(total, name, getattr(total, name) + getattr(result.stats, name))
        if result.bucket == LOAD_STATS_BUCKET:
            for name in BUCKET_EXCLUSIVE_STATS:
                setattr(total, name, getattr(result.stats, name))
    return total


def summarize_errors(results: dict[SyncTarget, BucketSyncResult]) -> str | None:
    errors = [
        f"{target.value}: {result.error}"
        for target, result in results.items()
        if not result.success and result.error
    ]
    return "; ".join(errors) or None


@dataclass(slots=True)
class SyncOrchestrator:
    """Entry point for single-target and unified syncs.

    Dry runs neither check nor record run tokens; they leave no trace in storage.
    """

    reconcile: RunBucket
    activity: ActivityReporter | None = None

    def run_target(
        self,
        target: SyncTarget,
        *,
        scope: SyncScope,
        run_id: UUID | None = None,
        dry_run: bool = False,
    ) -> BucketSyncResult:
        run_id = self._claim_run(
            run_id, scope=scope, action=target.activity_action, dry_run=dry_run
        )
        result = self._run_bucket(target, scope=scope, run_id=run_id, dry_run=dry_run)
        if not dry_run:
            self._report(
                scope,
                action=target.activity_action,
                success=result.success,
                run_id=run_id,
                duration_seconds=result.duration_seconds,
                details=_bucket_details(result),
            )
        return result

    def run_all(
        self,
        *,
        scope: SyncScope,
        run_id: UUID | None = None,
        dry_run: bool = False,
        targets: Iterable[SyncTarget] = ALL_TARGETS,
    ) -> AggregateSyncResult:
        run_id = self._claim_run(run_id, scope=scope, action=UNIFIED_ACTION, dry_run=dry_run)
        started = time.monotonic()
        results: dict[SyncTarget, BucketSyncResult] = {}
        for target in _in_run_order(targets):
            results[target] = self._run_bucket(target, scope=scope, run_id=run_id, dry_run=dry_run)

        aggregate = AggregateSyncResult(
            run_id=run_id,
            success=all(result.success for result in results.values()),
            results=results,
            stats=aggregate_stats(results.values()),
            error=summarize_errors(results),
            dry_run=dry_run,
            duration_seconds=time.monotonic() - started,
        )
        if aggregate.success:
            log.info("Unified sync finished: %s targets", len(results))
        else:
            log.warning("Unified sync finished with failures: %s", aggregate.error)

        if not dry_run:
            self._report(
                scope,
                action=UNIFIED_ACTION,
                success=aggregate.success,
                run_id=run_id,
                duration_seconds=aggregate.duration_seconds,
                details={
                    "stats": aggregate.stats.to_dict(),
                    "error": aggregate.error,
                    "targets": {
                        target.value: result.success for target, result in results.items()
                    },
                },
            )
        return aggregate

    def _claim_run(
        self,
        run_id: UUID | None,
        *,
        scope: SyncScope,
        action: str,
        dry_run: bool,
    ) -> UUID | None:
        """Validate the caller's run token; a rejected claim is reported before re-raising.

        The rejection entry is recorded without a run id; the token stays unclaimed.
        """

        if dry_run:
            return run_id
        if run_id is None:
            return new_id()
        if self.activity is None:
            return run_id
        try:
            seen = self.activity.has_run(run_id)
        except StorageError as exc:
            self._reject_run(run_id, exc, scope=scope, action=action)
            raise
        if seen:
            duplicate = DuplicateRunError(run_id)
            self._reject_run(run_id, duplicate, scope=scope, action=action)
            raise duplicate
        return run_id

    def _reject_run(
        self, run_id: UUID, exc: Exception, *, scope: SyncScope, action: str
    ) -> None:
        log.warning("Rejected %s run %s: %s", action, run_id, exc)
        self._report(
            scope,
            action=action,
            success=False,
            run_id=None,
            duration_seconds=0.0,
            details={"error": str(exc) or type(exc).__name__, "run_id": str(run_id)},
        )

    def _run_bucket(
        self,
        target: SyncTarget,
        *,
        scope: SyncScope,
        run_id: UUID | None,
        dry_run: bool,
    ) -> BucketSyncResult:
        started = time.monotonic()
        try:
            result = self.reconcile(target.bucket, scope=scope, run_id=run_id, dry_run=dry_run)
        except Exception as exc:  # noqa: BLE001
            log.exception("%s sync failed", target.value)
            return BucketSyncResult.failed(
                target.bucket,
                error=str(exc) or type(exc).__name__,
                target=target,
                run_id=run_id,
                duration_seconds=time.monotonic() - started,
            )
        result.target = target
        return result

    def _report(  # noqa: PLR0913
        self,
        scope: SyncScope,
        *,
        action: str,
        success: bool,
        run_id: UUID | None,
        duration_seconds: float,
        details: dict[str, Any],
    ) -> None:
        if self.activity is None:
            return
        self.activity.record(
            ActivityLogEntry(
                company_id=scope.company_id,
                location_id=scope.location_id,
                action=action,
                success=success,
                run_id=run_id,
                duration_ms=round(duration_seconds * 1000),
                details=details,
            )
        )


def _in_run_order(targets: Iterable[SyncTarget]) -> list[SyncTarget]:
    requested = set(targets)
    return [target for target in ALL_TARGETS if target in requested]


def _bucket_details(result: BucketSyncResult) -> dict[str, Any]:
    return {
        "bucket": result.bucket.value,
        "stats": result.stats.to_dict(),
        "changes_logged": result.changes_logged,
        "failed_change_batches": result.failed_change_batches,
        "error": result.error,
    }
