from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator
import logging

from sqlalchemy import event, Result, CursorResult
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

import config
from models.base import Base
# Registers every table on Base.metadata
import models  # noqa: F401

logger = logging.getLogger(__name__)

# Connection execution option marking a transaction that will write
WRITE_TRANSACTION_OPTION = "shop_write_transaction"


def configure_sqlite_engine(engine: AsyncEngine) -> AsyncEngine:
    """
    Install SQLite connection hooks on an async engine.

    Transactions start deferred, so readers never take the database write
    lock. A session that is about to write calls ``session_begin_write``
    first; its transaction then starts with BEGIN IMMEDIATE and concurrent
    writers queue on busy_timeout instead of failing on a lock upgrade.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let the "begin" hook below emit BEGIN instead of the driver
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=10000")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        if conn.get_execution_options().get(WRITE_TRANSACTION_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_async_engine(url, echo=echo, pool_pre_ping=True)

    database = parsed.database
    if database and database != ":memory:":
        Path(database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(url, echo=echo)
    else:
        engine = create_async_engine(url, echo=echo, poolclass=StaticPool,
                                     connect_args={"check_same_thread": False})
    return configure_sqlite_engine(engine)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# SQL echo stays off; SQLAlchemy loggers are tuned in utils/logging_config.py
engine = build_engine(config.DB_URL)
session_maker = build_session_maker(engine)


@asynccontextmanager
async def get_db_session(maker: async_sessionmaker[AsyncSession] | None = None) -> AsyncIterator[AsyncSession]:
    async with (maker or session_maker)() as session:
        yield session


async def session_execute(stmt, session: AsyncSession | Session, params: dict | None = None) -> Result[Any] | CursorResult[Any]:
    if isinstance(session, AsyncSession):
        query_result = await session.execute(stmt, params)
        return query_result
    else:
        query_result = session.execute(stmt, params)
        return query_result


async def session_flush(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.flush()
    else:
        session.flush()


async def session_commit(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.commit()
    else:
        session.commit()


async def session_rollback(session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.rollback()
    else:
        session.rollback()


async def session_begin_write(session: AsyncSession | Session) -> None:
    """
    Open the session's next transaction as a write transaction.

    No-op when a transaction is already running on the session.
    """
    if session.in_transaction():
        return
    options = {WRITE_TRANSACTION_OPTION: True}
    if isinstance(session, AsyncSession):
        await session.connection(execution_options=options)
    else:
        session.connection(execution_options=options)


async def session_refresh(instance, session: AsyncSession | Session) -> None:
    if isinstance(session, AsyncSession):
        await session.refresh(instance)
    else:
        session.refresh(instance)


async def create_db_and_tables(target_engine: AsyncEngine | None = None) -> None:
    """Create missing tables. Existing tables and data are left untouched."""
    target_engine = target_engine or engine
    async with target_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"[DB] Schema ready ({len(Base.metadata.tables)} tables)")
