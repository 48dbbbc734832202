"""Activity-log reporting for sync invocations."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from invsync.domain.ports.persistence import StorageError

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from invsync.domain.model import ActivityLogEntry
    from invsync.domain.ports.unit_of_work import ReconciliationUnitOfWork

log = getLogger(__name__)


class ActivityReporter(Protocol):
    """Where the orchestrator records what each invocation did."""

    def has_run(self, run_id: UUID) -> bool: ...

    def record(self, entry: ActivityLogEntry) -> None: ...


@dataclass(slots=True)
class UnitOfWorkActivityReporter:
    """Write activity entries through their own short-lived unit of work.

    A failed write is logged and dropped; the sync result it describes has
    already been committed (or already failed) by then.
    """

    unit_of_work_factory: Callable[[], ReconciliationUnitOfWork]

    def has_run(self, run_id: UUID) -> bool:
        with self.unit_of_work_factory() as uow:
            return uow.repositories.activity.has_run(run_id)

    def record(self, entry: ActivityLogEntry) -> None:
        try:
            with self.unit_of_work_factory() as uow:
                uow.repositories.activity.add(entry)
                uow.commit()
        except StorageError:
            log.exception("Failed to record %s activity for run %s", entry.action, entry.run_id)
            return
        log.debug("Recorded %s activity (success=%s)", entry.action, entry.success)


__all__ = ["ActivityReporter", "UnitOfWorkActivityReporter"]
