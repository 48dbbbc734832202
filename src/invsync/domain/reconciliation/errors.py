"""Errors raised while reconciling a bucket."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from uuid import UUID

    from invsync.domain.model import InventoryBucket


class ReconciliationError(RuntimeError):
    """Base class for reconciliation failures."""


class PersistenceError(ReconciliationError):
    """A storage write failed; batches committed before it stay applied."""

    def __init__(
        self,
        *,
        bucket: InventoryBucket,
        step: str,
        batch_index: int,
        cause: BaseException | None = None,
    ) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"{bucket.value} {step} batch {batch_index} failed{detail}")
        self.bucket = bucket
        self.step = step
        self.batch_index = batch_index


class DuplicateRunError(ReconciliationError):
    """The run token was already recorded by an earlier invocation."""

    def __init__(self, run_id: UUID) -> None:
        super().__init__(f"Sync run {run_id} was already recorded")
        self.run_id = run_id
