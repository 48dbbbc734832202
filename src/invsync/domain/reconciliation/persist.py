"""Batched persistence of a reconciliation plan.

Responsibilities of this stage:
- append change events, best-effort
- upsert load metadata
- insert new items, then update existing items by id
- flag orphans
- open, reopen and resolve placement conflicts
- commit each batch on its own

There is no surrounding transaction. A failed change-event batch is rolled back,
counted and skipped; any other failed batch is rolled back and aborts the run
with ``PersistenceError`` while earlier batches stay committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import batched
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from invsync.domain.model import DEFAULT_ORPHAN_STATUS, utcnow
from invsync.domain.ports.persistence import StorageError

from .errors import PersistenceError

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import datetime
    from uuid import UUID

    from invsync.domain.ports.unit_of_work import ReconciliationUnitOfWork

    from .contracts import ItemPayload
    from .plan import ReconciliationPlan

log = getLogger(__name__)

DEFAULT_BATCH_SIZE = 500


@dataclass(slots=True)
class PersistenceResult:
    """Summary of persisted changes for one reconciliation run."""

    committed: bool
    changes_logged: int = 0
    failed_change_batches: int = 0
    loads_written: int = 0
    items_inserted: int = 0
    items_updated: int = 0
    items_orphaned: int = 0
    duplicate_ids: int = 0
    conflicts_opened: int = 0
    conflicts_resolved: int = 0


class PersistReconciliation(Protocol):
    """Write a plan through a unit of work and report what was stored."""

    def __call__(
        self,
        uow: ReconciliationUnitOfWork,
        plan: ReconciliationPlan,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        mark_orphans: bool = True,
        orphan_status: str = DEFAULT_ORPHAN_STATUS,
        now: datetime | None = None,
    ) -> PersistenceResult: ...


def dedupe_by_id(payloads: Sequence[ItemPayload]) -> tuple[list[ItemPayload], int]:
    """Collapse payloads sharing an id; the last occurrence wins.

    Two payloads for one id mean resolution matched the same row twice, so every
    collision is logged.
    """

    by_id: dict[UUID | None, ItemPayload] = {}
    duplicates = 0
    for payload in payloads:
        if payload.id in by_id:
            duplicates += 1
            log.warning(
                "Duplicate upsert for item %s (serial %s); keeping last occurrence",
                payload.id,
                payload.serial,
            )
        by_id[payload.id] = payload
    return list(by_id.values()), duplicates


def persist_plan(
    uow: ReconciliationUnitOfWork,
    plan: ReconciliationPlan,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    mark_orphans: bool = True,
    orphan_status: str = DEFAULT_ORPHAN_STATUS,
    now: datetime | None = None,
) -> PersistenceResult:
    """Execute ``plan`` in batches of ``batch_size`` rows. ``uow`` must be entered."""

    if batch_size < 1:
        raise ValueError("batch_size must be positive")
    written_at = now or utcnow()
    repositories = uow.repositories
    result = PersistenceResult(committed=False)

    for index, batch in enumerate(batched(plan.changes, batch_size)):
        try:
            repositories.changes.add_many(batch)
            uow.commit()
        except StorageError:
            uow.rollback()
            result.failed_change_batches += 1
            log.exception(
                "Failed to log %s change events (%s batch %s); continuing",
                len(batch),
                plan.bucket,
                index,
            )
            continue
        result.changes_logged += len(batch)

    def write_steps[T](
        step: str,
        rows: Sequence[T],
        write: Callable[[Sequence[T]], int],
    ) -> int:
        written = 0
        for index, batch in enumerate(batched(rows, batch_size)):
            try:
                written += write(batch)
                uow.commit()
            except StorageError as exc:
                uow.rollback()
                raise PersistenceError(
                    bucket=plan.bucket, step=step, batch_index=index, cause=exc
                ) from exc
        return written

    result.loads_written = write_steps(
        "load upsert",
        plan.loads_to_upsert,
        lambda batch: repositories.loads.upsert_many(batch, now=written_at),
    )
    result.items_inserted = write_steps(
        "item insert",
        plan.inserts,
        lambda batch: repositories.items.insert_many(batch, now=written_at),
    )
    updates, result.duplicate_ids = dedupe_by_id(plan.updates)
    result.items_updated = write_steps(
        "item update",
        updates,
        lambda batch: repositories.items.update_many(batch, now=written_at),
    )
    if mark_orphans:
        result.items_orphaned = write_steps(
            "orphan flag",
            plan.orphan_ids,
            lambda batch: repositories.items.mark_orphaned(
                batch, at=written_at, status=orphan_status
            ),
        )

    try:
        synced = repositories.conflicts.sync_open(
            plan.scope, plan.bucket, plan.conflicts, now=written_at
        )
        uow.commit()
    except StorageError as exc:
        uow.rollback()
        raise PersistenceError(
            bucket=plan.bucket, step="conflict sync", batch_index=0, cause=exc
        ) from exc
    result.conflicts_opened = synced.opened
    result.conflicts_resolved = synced.resolved

    result.committed = True
    log.info(
        "Persisted %s plan: changes=%s (failed batches=%s), inserted=%s, updated=%s, "
        "orphaned=%s, loads=%s, conflicts opened=%s resolved=%s",
        plan.bucket,
        result.changes_logged,
        result.failed_change_batches,
        result.items_inserted,
        result.items_updated,
        result.items_orphaned,
        result.loads_written,
        result.conflicts_opened,
        result.conflicts_resolved,
    )
    return result
