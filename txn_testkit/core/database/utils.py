"""
Database utility functions for engine and session management.

This module provides the utility functions test suites use to build the
engines handed to the transaction isolator. Built with async SQLAlchemy.

Functions:
- create_engine: Creates async SQLAlchemy engine with URL normalization
- create_engine_from_settings: Creates the engine for the configured database URL
- create_sessionmaker: Creates async session factory with safe defaults
- create_all: Creates all tables from ORM metadata inside the current transaction
"""

from __future__ import annotations

import re
from typing import Optional, Union

from sqlalchemy import MetaData, event
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from txn_testkit.core.config import get_settings

_POSTGRES_URL = re.compile(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://")


def create_engine(db_url: str, **kwargs) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    The helper normalizes Postgres URLs to ensure the async driver is used.
    For example, it rewrites ``postgresql://`` and other variants to
    ``postgresql+asyncpg://``.

    SQLite engines get listeners that make SQLite emit its own ``BEGIN``.
    Without them the driver starts transactions lazily on the first DML
    statement, so schema created by a setup callback would be committed
    instead of rolled back with the test.

    Args:
        db_url: Database connection URL
        **kwargs: Extra keyword arguments for ``create_async_engine``

    Returns:
        Configured AsyncEngine instance
    """
    url = _POSTGRES_URL.sub("postgresql+asyncpg://", db_url, count=1)
    if url.startswith("postgresql"):
        kwargs.setdefault("pool_pre_ping", True)
    engine = create_async_engine(url, **kwargs)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_transactional_ddl(engine)
    return engine


def create_engine_from_settings(**kwargs) -> AsyncEngine:
    """Create an engine for the ``database_url`` setting (``TXN_TESTKIT_DATABASE_URL``)."""
    return create_engine(get_settings().database_url, **kwargs)


def _enable_sqlite_transactional_ddl(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` with safe defaults for this project.

    Args:
        engine: Async SQLAlchemy engine

    Returns:
        Configured async session factory
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(
    target: Union[AsyncEngine, AsyncConnection, AsyncSession],
    metadata: Optional[MetaData] = None,
) -> None:
    """Create all tables for the given metadata.

    Given a connection or session (the handle an isolated test receives), the
    DDL runs inside that transaction and disappears with the rollback. Given
    an engine, it runs in its own committed transaction.

    Args:
        target: Engine, connection or session to create the tables with
        metadata: Metadata to create; defaults to the shared SQLModel metadata
    """
    metadata = metadata if metadata is not None else SQLModel.metadata

    if isinstance(target, AsyncEngine):
        async with target.begin() as conn:
            await conn.run_sync(metadata.create_all)
    elif isinstance(target, AsyncSession):
        await target.run_sync(lambda session: metadata.create_all(session.connection()))
    else:
        await target.run_sync(metadata.create_all)
