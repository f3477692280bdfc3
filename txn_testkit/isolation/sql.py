"""SQLAlchemy async transaction isolators.

Both isolators take an ``AsyncEngine`` as their connection resource, check out
one ``AsyncConnection`` per test, apply the isolation level as an execution
option and begin a transaction explicitly. The transaction is rolled back in a
``finally`` block and never committed; ``destroy`` disposes the engine.

Usage
-----

::

    isolator = SQLAlchemyTransactionIsolator()
    await isolator.run(
        lambda: create_engine(url),
        test_body,
        setup=create_test_tables,
        isolation_level=IsolationLevel.SERIALIZABLE,
    )

SQLite only accepts ``SERIALIZABLE`` and ``READ UNCOMMITTED``; any other level
fails during ``begin``.
"""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine
from sqlmodel.ext.asyncio.session import AsyncSession

from txn_testkit.core.levels import IsolationLevel

from .base import TransactionBody, TransactionIsolator

logger = logging.getLogger(__name__)


class SQLAlchemyTransactionIsolator(TransactionIsolator[AsyncEngine, AsyncConnection]):
    """Isolator whose transaction handle is an ``AsyncConnection``."""

    async def transact(
        self,
        connection: AsyncEngine,
        isolation_level: IsolationLevel,
        body: TransactionBody,
    ) -> None:
        async with connection.connect() as conn:
            await conn.execution_options(isolation_level=isolation_level.value)
            trans = await conn.begin()
            logger.debug(f"Began {isolation_level.value} transaction on {connection.url.render_as_string()}")
            try:
                await self._call_body(conn, body)
            finally:
                if trans.is_active:
                    await trans.rollback()
                    logger.debug("Rolled back test transaction")

    async def _call_body(self, conn: AsyncConnection, body: TransactionBody) -> None:
        await body(conn)

    async def destroy(self, connection: AsyncEngine) -> None:
        await connection.dispose()


class SQLModelTransactionIsolator(SQLAlchemyTransactionIsolator):
    """Isolator whose transaction handle is a SQLModel ``AsyncSession``.

    The session joins the connection's transaction; flushes are visible to the
    test and are discarded with the rollback. The session is closed before the
    transaction is rolled back.
    """

    async def _call_body(self, conn: AsyncConnection, body: TransactionBody) -> None:
        session = AsyncSession(bind=conn, expire_on_commit=False)
        try:
            await body(session)
        finally:
            await session.close()
