"""SQLAlchemy adapter package for invsync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyActivityLogRepository,
    SqlAlchemyChangeEventRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyInventoryItemRepository,
    SqlAlchemyLoadRepository,
    SqlAlchemyProductRepository,
)
from .unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyActivityLogRepository",
    "SqlAlchemyChangeEventRepository",
    "SqlAlchemyConflictRepository",
    "SqlAlchemyInventoryItemRepository",
    "SqlAlchemyLoadRepository",
    "SqlAlchemyProductRepository",
    "SqlAlchemyUnitOfWork",
    "StartupError",
    "configured_engine",
    "create_all_tables",
    "is_started",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
