"""Repository implementations backed by SQLAlchemy sessions.

Reads return mapped domain objects. Bulk writes go through Core statements keyed by
primary key, so workflow columns outside a statement's value list are never touched.
"""

from __future__ import annotations

from contextlib import contextmanager
from itertools import batched
from typing import TYPE_CHECKING, Any

from sqlalchemy import bindparam, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from invsync.adapters.sqlalchemy.mappings import (
    activity_log_table,
    change_event_table,
    inventory_conflict_table,
    inventory_item_table,
    load_metadata_table,
    product_table,
)
from invsync.domain.model import (
    ActivityLogEntry,
    ChangeEvent,
    ConflictStatus,
    InventoryConflict,
    InventoryItem,
    LoadMetadata,
    Product,
    new_id,
)
from invsync.domain.ports.persistence import ConflictSyncResult, StorageError
from invsync.domain.reconciliation.contracts import ITEM_WRITE_FIELDS, LOAD_WRITE_FIELDS

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator, Sequence
    from datetime import datetime
    from uuid import UUID

    from sqlalchemy import Table
    from sqlalchemy.orm import Session

    from invsync.domain.model import InventoryBucket, SyncScope
    from invsync.domain.reconciliation.contracts import ConflictPayload, ItemPayload, LoadPayload

# Bound on IN-list sizes; SQLite caps the number of parameters per statement.
IN_CLAUSE_CHUNK = 500


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"{operation} failed: {exc}") from exc


def _update_by_id(
    session: Session,
    table: Table,
    columns: Sequence[str],
    rows: Sequence[dict[str, Any]],
) -> int:
    """Execute one UPDATE per row, matching on ``id``; ``rows`` carry ``b_id`` + ``v_*`` keys."""

    if not rows:
        return 0
    stmt = (
        update(table)
        .where(table.c.id == bindparam("b_id"))
        .values({column: bindparam(f"v_{column}") for column in columns})
    )
    session.execute(stmt, list(rows))
    return len(rows)


def _bound(values: dict[str, Any]) -> dict[str, Any]:
    return {f"v_{key}": value for key, value in values.items()}


class SqlAlchemyInventoryItemRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_buckets(
        self, scope: SyncScope, buckets: Collection[InventoryBucket]
    ) -> list[InventoryItem]:
        if not buckets:
            return []
        stmt = (
            select(InventoryItem)
            .where(inventory_item_table.c.company_id == scope.company_id)
            .where(inventory_item_table.c.location_id == scope.location_id)
            .where(inventory_item_table.c.bucket.in_(list(buckets)))
        )
        with _storage_errors("inventory read"):
            return list(self.session.scalars(stmt))

    def list_by_serials(
        self,
        scope: SyncScope,
        serials: Collection[str],
        *,
        exclude_buckets: Collection[InventoryBucket] = (),
    ) -> list[InventoryItem]:
        found: list[InventoryItem] = []
        for chunk in batched(sorted(serials), IN_CLAUSE_CHUNK):
            stmt = (
                select(InventoryItem)
                .where(inventory_item_table.c.company_id == scope.company_id)
                .where(inventory_item_table.c.location_id == scope.location_id)
                .where(inventory_item_table.c.serial.in_(chunk))
            )
            if exclude_buckets:
                stmt = stmt.where(inventory_item_table.c.bucket.not_in(list(exclude_buckets)))
            with _storage_errors("inventory serial lookup"):
                found.extend(self.session.scalars(stmt))
        return found

    def insert_many(self, payloads: Sequence[ItemPayload], *, now: datetime) -> int:
        if not payloads:
            return 0
        rows = [
            {
                "id": new_id(),
                "company_id": payload.company_id,
                "location_id": payload.location_id,
                **payload.values(),
                "is_scanned": False,
                "created_at": now,
                "updated_at": now,
            }
            for payload in payloads
        ]
        with _storage_errors("inventory insert"):
            self.session.execute(insert(inventory_item_table), rows)
        return len(rows)

    def update_many(self, payloads: Sequence[ItemPayload], *, now: datetime) -> int:
        columns = (*ITEM_WRITE_FIELDS, "updated_at")
        plain = [
            {"b_id": payload.id, **_bound(payload.values()), "v_updated_at": now}
            for payload in payloads
            if not payload.reset_status
        ]
        # recovered rows also drop the orphan marker from ``status``
        recovered = [
            {
                "b_id": payload.id,
                **_bound(payload.values()),
                "v_updated_at": now,
                "v_status": None,
            }
            for payload in payloads
            if payload.reset_status
        ]
        with _storage_errors("inventory update"):
            written = _update_by_id(self.session, inventory_item_table, columns, plain)
            written += _update_by_id(
                self.session, inventory_item_table, (*columns, "status"), recovered
            )
        return written

    def mark_orphaned(self, ids: Sequence[UUID], *, at: datetime, status: str) -> int:
        if not ids:
            return 0
        stmt = (
            update(inventory_item_table)
            .where(inventory_item_table.c.id.in_(list(ids)))
            .values(ge_orphaned=True, ge_orphaned_at=at, status=status, updated_at=at)
        )
        with _storage_errors("orphan flag"):
            self.session.execute(stmt)
        return len(ids)


class SqlAlchemyChangeEventRepository:
    """Append-only; events are only ever added."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def add_many(self, events: Sequence[ChangeEvent]) -> int:
        with _storage_errors("change event insert"):
            self.session.add_all(events)
            self.session.flush()
        return len(events)

    def list_for_scope(self, scope: SyncScope) -> list[ChangeEvent]:
        stmt = (
            select(ChangeEvent)
            .where(change_event_table.c.company_id == scope.company_id)
            .where(change_event_table.c.location_id == scope.location_id)
            .order_by(change_event_table.c.created_at)
        )
        with _storage_errors("change event read"):
            return list(self.session.scalars(stmt))


class SqlAlchemyLoadRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_bucket(self, scope: SyncScope, bucket: InventoryBucket) -> list[LoadMetadata]:
        stmt = (
            select(LoadMetadata)
            .where(load_metadata_table.c.company_id == scope.company_id)
            .where(load_metadata_table.c.location_id == scope.location_id)
            .where(load_metadata_table.c.bucket == bucket)
        )
        with _storage_errors("load read"):
            return list(self.session.scalars(stmt))

    def upsert_many(self, payloads: Sequence[LoadPayload], *, now: datetime) -> int:
        inserts = [
            {
                "id": new_id(),
                "company_id": payload.company_id,
                "location_id": payload.location_id,
                "bucket": payload.bucket,
                "load_number": payload.load_number,
                "status": "active",
                **payload.values(),
                "created_at": now,
                "updated_at": now,
            }
            for payload in payloads
            if payload.id is None
        ]
        updates = [
            {"b_id": payload.id, **_bound(payload.values()), "v_updated_at": now}
            for payload in payloads
            if payload.id is not None
        ]
        with _storage_errors("load upsert"):
            if inserts:
                self.session.execute(insert(load_metadata_table), inserts)
            _update_by_id(
                self.session, load_metadata_table, (*LOAD_WRITE_FIELDS, "updated_at"), updates
            )
        return len(inserts) + len(updates)


class SqlAlchemyProductRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, product: Product) -> None:
        with _storage_errors("product insert"):
            self.session.add(product)
            self.session.flush()

    def list_for_company(self, company_id: str) -> list[Product]:
        stmt = select(Product).where(product_table.c.company_id == company_id)
        with _storage_errors("product read"):
            return list(self.session.scalars(stmt))


class SqlAlchemyActivityLogRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, entry: ActivityLogEntry) -> None:
        with _storage_errors("activity log insert"):
            self.session.add(entry)
            self.session.flush()

    def has_run(self, run_id: UUID) -> bool:
        stmt = select(activity_log_table.c.id).where(activity_log_table.c.run_id == run_id).limit(1)
        with _storage_errors("activity log read"):
            return self.session.execute(stmt).first() is not None

    def list_for_scope(self, scope: SyncScope) -> list[ActivityLogEntry]:
        stmt = (
            select(ActivityLogEntry)
            .where(activity_log_table.c.company_id == scope.company_id)
            .where(activity_log_table.c.location_id == scope.location_id)
            .order_by(activity_log_table.c.created_at)
        )
        with _storage_errors("activity log read"):
            return list(self.session.scalars(stmt))


class SqlAlchemyConflictRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def list_for_bucket(
        self, scope: SyncScope, bucket: InventoryBucket
    ) -> list[InventoryConflict]:
        stmt = (
            select(InventoryConflict)
            .where(inventory_conflict_table.c.company_id == scope.company_id)
            .where(inventory_conflict_table.c.location_id == scope.location_id)
            .where(inventory_conflict_table.c.bucket == bucket)
            .order_by(inventory_conflict_table.c.kind, inventory_conflict_table.c.serial)
        )
        with _storage_errors("conflict read"):
            return list(self.session.scalars(stmt))

    def sync_open(
        self,
        scope: SyncScope,
        bucket: InventoryBucket,
        observed: Sequence[ConflictPayload],
        *,
        now: datetime,
    ) -> ConflictSyncResult:
        existing = {
            (conflict.kind, conflict.serial): conflict
            for conflict in self.list_for_bucket(scope, bucket)
        }
        opened = 0
        seen: set[tuple[str, str]] = set()
        with _storage_errors("conflict sync"):
            for payload in observed:
                if payload.key in seen:
                    continue
                seen.add(payload.key)
                conflict = existing.get(payload.key)
                if conflict is None:
                    self.session.add(
                        InventoryConflict(
                            company_id=scope.company_id,
                            location_id=scope.location_id,
                            bucket=bucket,
                            kind=payload.kind,
                            serial=payload.serial,
                            conflicting_with=payload.conflicting_with,
                            load_number=payload.load_number,
                            detected_at=now,
                            updated_at=now,
                        )
                    )
                    opened += 1
                    continue
                if conflict.is_open and (
                    conflict.conflicting_with == payload.conflicting_with
                    and conflict.load_number == payload.load_number
                ):
                    continue
                if not conflict.is_open:
                    opened += 1
                    conflict.detected_at = now
                conflict.status = ConflictStatus.OPEN
                conflict.resolved_at = None
                conflict.conflicting_with = payload.conflicting_with
                conflict.load_number = payload.load_number
                conflict.updated_at = now

            resolved = 0
            for key, conflict in existing.items():
                if key in seen or not conflict.is_open:
                    continue
                conflict.status = ConflictStatus.RESOLVED
                conflict.resolved_at = now
                conflict.updated_at = now
                resolved += 1
            self.session.flush()
        return ConflictSyncResult(opened=opened, resolved=resolved)


if TYPE_CHECKING:
    from invsync.domain.ports.persistence import (
        ActivityLogRepository,
        ChangeEventRepository,
        ConflictRepository,
        InventoryItemRepository,
        LoadRepository,
        ProductRepository,
    )

    def _protocol_checks(session: Session) -> None:
        _items: InventoryItemRepository = SqlAlchemyInventoryItemRepository(session)
        _changes: ChangeEventRepository = SqlAlchemyChangeEventRepository(session)
        _loads: LoadRepository = SqlAlchemyLoadRepository(session)
        _products: ProductRepository = SqlAlchemyProductRepository(session)
        _activity: ActivityLogRepository = SqlAlchemyActivityLogRepository(session)
        _conflicts: ConflictRepository = SqlAlchemyConflictRepository(session)
