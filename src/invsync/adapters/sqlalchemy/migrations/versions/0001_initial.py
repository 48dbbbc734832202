"""Initial inventory schema.

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _scope_columns() -> list[sa.Column[str]]:
    return [
        sa.Column("company_id", sa.String(), nullable=False),
        sa.Column("location_id", sa.String(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "product",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("company_id", sa.String(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("product_type", sa.String(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_product"),
    )
    op.create_index("ix_product_company_model", "product", ["company_id", "model"])

    op.create_table(
        "inventory_item",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_scope_columns(),
        sa.Column("serial", sa.String(), nullable=True),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("cso", sa.String(), nullable=False),
        sa.Column("inventory_type", sa.String(length=32), nullable=False),
        sa.Column("sub_inventory", sa.String(), nullable=True),
        sa.Column("qty", sa.Integer(), nullable=False),
        sa.Column("product_fk", sa.Uuid(), nullable=True),
        sa.Column("product_type", sa.String(), nullable=False),
        sa.Column("ge_model", sa.String(), nullable=True),
        sa.Column("ge_serial", sa.String(), nullable=True),
        sa.Column("ge_inv_qty", sa.Integer(), nullable=True),
        sa.Column("ge_availability_status", sa.String(), nullable=True),
        sa.Column("ge_availability_message", sa.String(), nullable=True),
        sa.Column("ge_ordc", sa.String(), nullable=True),
        sa.Column("ge_orphaned", sa.Boolean(), nullable=False),
        sa.Column("ge_orphaned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_scanned", sa.Boolean(), nullable=False),
        sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("scanned_by", sa.String(), nullable=True),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["product_fk"],
            ["product.id"],
            name="fk_inventory_item_inventory_item_product_fk_product",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_inventory_item"),
    )
    op.create_index(
        "ix_inventory_item_scope_type",
        "inventory_item",
        ["company_id", "location_id", "inventory_type"],
    )
    op.create_index(
        "ix_inventory_item_scope_serial",
        "inventory_item",
        ["company_id", "location_id", "serial"],
    )

    op.create_table(
        "load_metadata",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_scope_columns(),
        sa.Column("inventory_type", sa.String(length=32), nullable=False),
        sa.Column("load_number", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("friendly_name", sa.String(), nullable=True),
        sa.Column("ge_source_status", sa.String(), nullable=True),
        sa.Column("ge_cso_status", sa.String(), nullable=True),
        sa.Column("ge_units", sa.Integer(), nullable=True),
        sa.Column("ge_notes", sa.String(), nullable=True),
        sa.Column("ge_submitted_date", sa.String(), nullable=True),
        sa.Column("ge_cso", sa.String(), nullable=True),
        sa.Column("ge_inv_org", sa.String(), nullable=True),
        sa.Column("ge_scanned_at", sa.String(), nullable=True),
        sa.Column("ge_orphaned", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_load_metadata"),
        sa.UniqueConstraint(
            "company_id",
            "location_id",
            "inventory_type",
            "load_number",
            name="uq_load_metadata_scope_load",
        ),
    )

    op.create_table(
        "ge_change",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_scope_columns(),
        sa.Column("inventory_type", sa.String(length=32), nullable=False),
        sa.Column("change_type", sa.String(length=40), nullable=False),
        sa.Column("serial", sa.String(), nullable=True),
        sa.Column("model", sa.String(), nullable=True),
        sa.Column("load_number", sa.String(), nullable=True),
        sa.Column("cso", sa.String(), nullable=True),
        sa.Column("field_changed", sa.String(), nullable=True),
        sa.Column("old_value", sa.String(), nullable=True),
        sa.Column("new_value", sa.String(), nullable=True),
        sa.Column("previous_state", sa.JSON(), nullable=True),
        sa.Column("current_state", sa.JSON(), nullable=True),
        sa.Column("source", sa.String(), nullable=True),
        sa.Column("run_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_ge_change"),
    )
    op.create_index(
        "ix_ge_change_scope_created", "ge_change", ["company_id", "location_id", "created_at"]
    )
    op.create_index("ix_ge_change_run_id", "ge_change", ["run_id"])

    op.create_table(
        "activity_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_scope_columns(),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("actor", sa.String(), nullable=False),
        sa.Column("run_id", sa.Uuid(), nullable=True),
        sa.Column("duration_ms", sa.Integer(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_activity_log"),
    )
    op.create_index("ix_activity_log_run_id", "activity_log", ["run_id"])

    op.create_table(
        "inventory_conflict",
        sa.Column("id", sa.Uuid(), nullable=False),
        *_scope_columns(),
        sa.Column("inventory_type", sa.String(length=32), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        sa.Column("serial", sa.String(), nullable=False),
        sa.Column("conflicting_with", sa.String(), nullable=False),
        sa.Column("load_number", sa.String(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("detected_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_inventory_conflict"),
        sa.UniqueConstraint(
            "company_id",
            "location_id",
            "inventory_type",
            "kind",
            "serial",
            name="uq_inventory_conflict_scope_serial",
        ),
    )


def downgrade() -> None:
    op.drop_table("inventory_conflict")
    op.drop_index("ix_activity_log_run_id", table_name="activity_log")
    op.drop_table("activity_log")
    op.drop_index("ix_ge_change_run_id", table_name="ge_change")
    op.drop_index("ix_ge_change_scope_created", table_name="ge_change")
    op.drop_table("ge_change")
    op.drop_table("load_metadata")
    op.drop_index("ix_inventory_item_scope_serial", table_name="inventory_item")
    op.drop_index("ix_inventory_item_scope_type", table_name="inventory_item")
    op.drop_table("inventory_item")
    op.drop_index("ix_product_company_model", table_name="product")
    op.drop_table("product")
