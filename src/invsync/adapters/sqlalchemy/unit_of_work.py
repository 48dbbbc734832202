"""SQLAlchemy-backed unit of work for reconciliation runs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from invsync.adapters.sqlalchemy.mappings import start_mappers
from invsync.adapters.sqlalchemy.migrations import upgrade_head
from invsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyActivityLogRepository,
    SqlAlchemyChangeEventRepository,
    SqlAlchemyConflictRepository,
    SqlAlchemyInventoryItemRepository,
    SqlAlchemyLoadRepository,
    SqlAlchemyProductRepository,
)
from invsync.config.storage import DatabaseConfig, get_database_config
from invsync.domain.ports.persistence import StorageError
from invsync.domain.ports.unit_of_work import ReconciliationRepositories, RepositoryCollection

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call invsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Initialise the engine, run pending migrations and build the session factory."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine
    if resolved_engine is None:
        database = DatabaseConfig(uri=database_uri) if database_uri else get_database_config()
        resolved_engine = create_engine(database.uri, echo=database.echo, future=True)
    start_mappers()
    upgrade_head(engine=resolved_engine)
    log.info("Storage ready at %s", resolved_engine.url.render_as_string(hide_password=True))
    _STATE.engine = resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections.

    ``commit`` and ``rollback`` may be called repeatedly inside one ``with`` block;
    the reconciliation persister commits once per batch.
    """

    def __init__(self) -> None:
        self.session_factory: sessionmaker[Session] = _STATE.session_factory
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"commit failed: {exc}") from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemyUnitOfWork(BaseSqlAlchemyUnitOfWork[ReconciliationRepositories]):
    """Unit of work exposing the repositories a reconciliation run needs."""

    def _build_repositories(self, session: Session) -> ReconciliationRepositories:
        return ReconciliationRepositories(
            items=SqlAlchemyInventoryItemRepository(session),
            changes=SqlAlchemyChangeEventRepository(session),
            loads=SqlAlchemyLoadRepository(session),
            products=SqlAlchemyProductRepository(session),
            activity=SqlAlchemyActivityLogRepository(session),
            conflicts=SqlAlchemyConflictRepository(session),
        )


if TYPE_CHECKING:
    from invsync.domain.ports.unit_of_work import ReconciliationUnitOfWork

    _uow_check: ReconciliationUnitOfWork = SqlAlchemyUnitOfWork()
