"""Ports for fetching external snapshots."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from invsync.domain.model import InventoryBucket, SyncScope
    from invsync.domain.snapshot import Snapshot


class FetchError(RuntimeError):
    """Raised when a bucket's snapshot cannot be obtained or decoded."""

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


@runtime_checkable
class SnapshotFetcher(Protocol):
    """Callable port returning the current external snapshot of one bucket."""

    def __call__(self, *, scope: SyncScope, bucket: InventoryBucket) -> Snapshot: ...


__all__ = ["FetchError", "SnapshotFetcher"]
