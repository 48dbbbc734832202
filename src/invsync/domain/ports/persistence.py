"""Ports for reading and writing the canonical inventory store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from datetime import datetime
    from uuid import UUID

    from invsync.domain.model import (
        ActivityLogEntry,
        ChangeEvent,
        InventoryBucket,
        InventoryConflict,
        InventoryItem,
        LoadMetadata,
        Product,
        SyncScope,
    )
    from invsync.domain.reconciliation.contracts import (
        ConflictPayload,
        ItemPayload,
        LoadPayload,
    )


class StorageError(RuntimeError):
    """Raised by repositories when the backing store rejects a read or write."""


@runtime_checkable
class InventoryItemRepository(Protocol):
    """Inventory rows; workflow columns are never part of a write."""

    def list_for_buckets(
        self, scope: SyncScope, buckets: Collection[InventoryBucket]
    ) -> list[InventoryItem]: ...

    def list_by_serials(
        self,
        scope: SyncScope,
        serials: Collection[str],
        *,
        exclude_buckets: Collection[InventoryBucket] = (),
    ) -> list[InventoryItem]: ...

    def insert_many(self, payloads: Sequence[ItemPayload], *, now: datetime) -> int: ...

    def update_many(self, payloads: Sequence[ItemPayload], *, now: datetime) -> int: ...

    def mark_orphaned(self, ids: Sequence[UUID], *, at: datetime, status: str) -> int: ...


@runtime_checkable
class ChangeEventRepository(Protocol):
    """Append-only audit trail; there is deliberately no update or delete."""

    def add_many(self, events: Sequence[ChangeEvent]) -> int: ...

    def list_for_scope(self, scope: SyncScope) -> list[ChangeEvent]: ...


@runtime_checkable
class LoadRepository(Protocol):
    def list_for_bucket(self, scope: SyncScope, bucket: InventoryBucket) -> list[LoadMetadata]: ...

    def upsert_many(self, payloads: Sequence[LoadPayload], *, now: datetime) -> int: ...


@runtime_checkable
class ProductRepository(Protocol):
    def add(self, product: Product) -> None: ...

    def list_for_company(self, company_id: str) -> list[Product]: ...


@runtime_checkable
class ActivityLogRepository(Protocol):
    def add(self, entry: ActivityLogEntry) -> None: ...

    def has_run(self, run_id: UUID) -> bool: ...

    def list_for_scope(self, scope: SyncScope) -> list[ActivityLogEntry]: ...


@dataclass(frozen=True, slots=True)
class ConflictSyncResult:
    opened: int = 0
    resolved: int = 0


@runtime_checkable
class ConflictRepository(Protocol):
    """Placement conflicts of one bucket, kept in step with the latest snapshot."""

    def list_for_bucket(
        self, scope: SyncScope, bucket: InventoryBucket
    ) -> list[InventoryConflict]: ...

    def sync_open(
        self,
        scope: SyncScope,
        bucket: InventoryBucket,
        observed: Sequence[ConflictPayload],
        *,
        now: datetime,
    ) -> ConflictSyncResult:
        """Open (or reopen) every ``observed`` conflict and resolve the bucket's others."""
        ...
