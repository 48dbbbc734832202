"""SQLAlchemy mapping metadata for the inventory model."""

from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    TypeDecorator,
    UniqueConstraint,
    Uuid,
    orm,
)
from sqlalchemy.orm import configure_mappers

from invsync.domain.model import (
    ActivityLogEntry,
    ChangeEvent,
    ChangeType,
    ConflictKind,
    ConflictStatus,
    InventoryBucket,
    InventoryConflict,
    InventoryItem,
    LoadMetadata,
    Product,
)

if TYPE_CHECKING:
    from enum import StrEnum

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _enum_values(enum_cls: type[StrEnum]) -> list[str]:
    return [member.value for member in enum_cls]


def _bucket_type() -> Enum:
    return Enum(InventoryBucket, native_enum=False, length=32, values_callable=_enum_values)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

product_table = Table(
    "product",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("company_id", String, nullable=False),
    Column("model", String, nullable=False),
    Column("product_type", String, nullable=False),
    Index("ix_product_company_model", "company_id", "model"),
)

inventory_item_table = Table(
    "inventory_item",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("company_id", String, nullable=False),
    Column("location_id", String, nullable=False),
    Column("serial", String, nullable=True),
    Column("model", String, nullable=False),
    Column("cso", String, nullable=False, default=""),
    Column("inventory_type", _bucket_type(), key="bucket", nullable=False),
    Column("sub_inventory", String, nullable=True),
    Column("qty", Integer, nullable=False, default=1),
    Column(
        "product_fk", UUIDColumnType, ForeignKey("product.id"), key="product_id", nullable=True
    ),
    Column("product_type", String, nullable=False),
    Column("ge_model", String, nullable=True),
    Column("ge_serial", String, nullable=True),
    Column("ge_inv_qty", Integer, nullable=True),
    Column("ge_availability_status", String, nullable=True),
    Column("ge_availability_message", String, nullable=True),
    Column("ge_ordc", String, nullable=True),
    Column("ge_orphaned", Boolean, nullable=False, default=False),
    Column("ge_orphaned_at", UTCDateTime(), nullable=True),
    Column("is_scanned", Boolean, nullable=False, default=False),
    Column("scanned_at", UTCDateTime(), nullable=True),
    Column("scanned_by", String, nullable=True),
    Column("notes", String, nullable=True),
    Column("status", String, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Index("ix_inventory_item_scope_serial", "company_id", "location_id", "serial"),
)
Index(
    "ix_inventory_item_scope_type",
    inventory_item_table.c.company_id,
    inventory_item_table.c.location_id,
    inventory_item_table.c.bucket,
)

load_metadata_table = Table(
    "load_metadata",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("company_id", String, nullable=False),
    Column("location_id", String, nullable=False),
    Column("inventory_type", _bucket_type(), key="bucket", nullable=False),
    Column("load_number", String, nullable=False),
    Column("status", String, nullable=False, default="active"),
    Column("friendly_name", String, nullable=True),
    Column("ge_source_status", String, nullable=True),
    Column("ge_cso_status", String, nullable=True),
    Column("ge_units", Integer, nullable=True),
    Column("ge_notes", String, nullable=True),
    Column("ge_submitted_date", String, nullable=True),
    Column("ge_cso", String, nullable=True),
    Column("ge_inv_org", String, nullable=True),
    Column("ge_scanned_at", String, nullable=True),
    Column("ge_orphaned", Boolean, nullable=False, default=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
)
load_metadata_table.append_constraint(
    UniqueConstraint(
        load_metadata_table.c.company_id,
        load_metadata_table.c.location_id,
        load_metadata_table.c.bucket,
        load_metadata_table.c.load_number,
        name="uq_load_metadata_scope_load",
    )
)

change_event_table = Table(
    "ge_change",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("company_id", String, nullable=False),
    Column("location_id", String, nullable=False),
    Column("inventory_type", _bucket_type(), key="bucket", nullable=False),
    Column(
        "change_type",
        Enum(ChangeType, native_enum=False, length=40, values_callable=_enum_values),
        nullable=False,
    ),
    Column("serial", String, nullable=True),
    Column("model", String, nullable=True),
    Column("load_number", String, nullable=True),
    Column("cso", String, nullable=True),
    Column("field_changed", String, nullable=True),
    Column("old_value", String, nullable=True),
    Column("new_value", String, nullable=True),
    Column("previous_state", JSON, nullable=True),
    Column("current_state", JSON, nullable=True),
    Column("source", String, nullable=True),
    Column("run_id", UUIDColumnType, nullable=True),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_ge_change_scope_created", "company_id", "location_id", "created_at"),
    Index("ix_ge_change_run_id", "run_id"),
)

activity_log_table = Table(
    "activity_log",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("company_id", String, nullable=False),
    Column("location_id", String, nullable=False),
    Column("action", String, nullable=False),
    Column("success", Boolean, nullable=False),
    Column("actor", String, nullable=False),
    Column("run_id", UUIDColumnType, nullable=True),
    Column("duration_ms", Integer, nullable=True),
    Column("details", JSON, nullable=False),
    Column("created_at", UTCDateTime(), nullable=False),
    Index("ix_activity_log_run_id", "run_id"),
)

inventory_conflict_table = Table(
    "inventory_conflict",
    mapper_registry.metadata,
    Column("id", UUIDColumnType, primary_key=True, default=uuid.uuid4),
    Column("company_id", String, nullable=False),
    Column("location_id", String, nullable=False),
    Column("inventory_type", _bucket_type(), key="bucket", nullable=False),
    Column(
        "kind",
        Enum(ConflictKind, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
    ),
    Column("serial", String, nullable=False),
    Column("conflicting_with", String, nullable=False),
    Column("load_number", String, nullable=True),
    Column(
        "status",
        Enum(ConflictStatus, native_enum=False, length=16, values_callable=_enum_values),
        nullable=False,
    ),
    Column("detected_at", UTCDateTime(), nullable=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Column("resolved_at", UTCDateTime(), nullable=True),
)
inventory_conflict_table.append_constraint(
    UniqueConstraint(
        inventory_conflict_table.c.company_id,
        inventory_conflict_table.c.location_id,
        inventory_conflict_table.c.bucket,
        inventory_conflict_table.c.kind,
        inventory_conflict_table.c.serial,
        name="uq_inventory_conflict_scope_serial",
    )
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Product, product_table)
    mapper_registry.map_imperatively(InventoryItem, inventory_item_table)
    mapper_registry.map_imperatively(LoadMetadata, load_metadata_table)
    mapper_registry.map_imperatively(ChangeEvent, change_event_table)
    mapper_registry.map_imperatively(ActivityLogEntry, activity_log_table)
    mapper_registry.map_imperatively(InventoryConflict, inventory_conflict_table)

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
