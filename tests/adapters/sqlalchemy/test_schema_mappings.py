from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import inspect

from invsync.adapters.sqlalchemy import create_all_tables, mapper_registry, start_mappers

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


def test_start_mappers_is_idempotent() -> None:
    # Mapping the same classes twice would raise; the cached call must be a no-op.
    start_mappers()
    start_mappers()


def test_migrations_match_mapped_tables(sqlite_engine: Engine) -> None:
    inspector = inspect(sqlite_engine)

    for table in mapper_registry.metadata.sorted_tables:
        migrated = {column["name"] for column in inspector.get_columns(table.name)}
        assert migrated == {column.name for column in table.columns}, table.name
        mapped_indexes = {index.name for index in table.indexes}
        migrated_indexes = {index["name"] for index in inspector.get_indexes(table.name)}
        assert mapped_indexes <= migrated_indexes, table.name


def test_load_numbers_unique_per_scope_and_bucket(sqlite_engine: Engine) -> None:
    constraints = inspect(sqlite_engine).get_unique_constraints("load_metadata")

    assert [constraint["column_names"] for constraint in constraints] == [
        ["company_id", "location_id", "inventory_type", "load_number"]
    ]


def test_conflicts_unique_per_scope_bucket_kind_and_serial(sqlite_engine: Engine) -> None:
    constraints = inspect(sqlite_engine).get_unique_constraints("inventory_conflict")

    assert [constraint["column_names"] for constraint in constraints] == [
        ["company_id", "location_id", "inventory_type", "kind", "serial"]
    ]


def test_create_all_tables_on_fresh_engine(sqlite_engine: Engine) -> None:
    create_all_tables(sqlite_engine)

    table_names = set(inspect(sqlite_engine).get_table_names())
    assert {
        "inventory_item",
        "load_metadata",
        "ge_change",
        "activity_log",
        "product",
        "inventory_conflict",
    } <= table_names
