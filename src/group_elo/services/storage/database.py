"""Engine creation, schema setup and the async session helper shared by repositories."""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from typing import Generic, TypeVar

import structlog
from sqlalchemy import Engine, event
from sqlalchemy.pool import NullPool
from sqlmodel import Session, SQLModel, create_engine

# Registers the tables on SQLModel.metadata
import group_elo.models  # noqa: F401

logger = structlog.get_logger()

T = TypeVar("T")

ROW_LOCKING_DIALECTS = frozenset({"postgresql", "mysql", "mariadb", "oracle"})

# DuckDB attaches one database instance per file and process
_DUCKDB_CONNECT_LOCK = threading.Lock()


def create_db_engine(database_url: str, create_tables: bool = True) -> Engine:
    """Create a SQLAlchemy engine and make sure the schema exists.

    Args:
        database_url: SQLAlchemy URL (e.g. "duckdb:///group_elo.duckdb").
        create_tables: Whether to create missing tables.

    Returns:
        Configured engine.
    """
    # NullPool: every session opens its own connection, safe across worker threads
    engine = create_engine(database_url, poolclass=NullPool)
    if engine.dialect.name == "duckdb":
        _pin_duckdb_instance(engine)
    if create_tables:
        SQLModel.metadata.create_all(engine)
    logger.debug("db_engine_created", dialect=engine.dialect.name)
    return engine


def _pin_duckdb_instance(engine: Engine) -> None:
    """Serialize DuckDB connects and keep the database attached until dispose().

    Opening the same file from several threads at once, or while its last
    connection is closing, fails with a file handle conflict. Connects go
    through one lock, and a held connection keeps the instance alive so later
    connects only reuse it.
    """

    @event.listens_for(engine, "do_connect")
    def _connect(dialect, _conn_rec, cargs, cparams):
        with _DUCKDB_CONNECT_LOCK:
            return dialect.connect(*cargs, **cparams)

    anchor = engine.raw_connection()

    @event.listens_for(engine, "engine_disposed")
    def _release(_engine):
        with _DUCKDB_CONNECT_LOCK:
            anchor.close()


def supports_row_locks(session: Session) -> bool:
    """Whether the session's dialect understands SELECT ... FOR UPDATE."""
    return session.get_bind().dialect.name in ROW_LOCKING_DIALECTS


class AsyncRepository(Generic[T]):
    """Base for repositories: sync SQLModel session work run on worker threads."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def _with_session(self, fn: Callable[[Session], T]) -> T:
        with Session(self._engine) as session:
            return fn(session)

    async def _run_session(self, fn: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._with_session, fn)
