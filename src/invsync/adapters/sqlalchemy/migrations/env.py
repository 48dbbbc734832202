"""Alembic environment for the invsync reconciliation schema.

``upgrade_head`` hands an open connection over through ``config.attributes``.
The ``alembic`` command line falls back to ``sqlalchemy.url`` and then to the
configured invsync database.
"""

from __future__ import annotations

from logging import getLogger
from logging.config import fileConfig
from pathlib import Path
from typing import TYPE_CHECKING, Any

from alembic import context
from sqlalchemy import create_engine, pool
from sqlalchemy.engine import make_url

from invsync.adapters.sqlalchemy.mappings import mapper_registry, start_mappers
from invsync.config import get_database_config

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection

log = getLogger("alembic.env")

config = context.config
if config.config_file_name is not None:
    ini_path = Path(config.config_file_name)
    if ini_path.suffix == ".ini" and ini_path.exists():
        fileConfig(ini_path)

start_mappers()

# SQLite rebuilds tables to alter constraints, so every migration runs in batch mode.
MIGRATION_OPTIONS: dict[str, Any] = {
    "target_metadata": mapper_registry.metadata,
    "render_as_batch": True,
    "compare_type": True,
}


def _database_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_config().uri


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **MIGRATION_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_offline() -> None:
    """Emit the migration SQL without connecting."""

    context.configure(url=_database_url(), literal_binds=True, **MIGRATION_OPTIONS)
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    handed_over = config.attributes.get("connection")
    if handed_over is not None:
        _migrate(handed_over)
        return

    url = _database_url()
    log.info("Migrating %s", make_url(url).render_as_string(hide_password=True))
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            _migrate(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
