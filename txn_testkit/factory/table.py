"""
SQLAlchemy Core factory.

``TableFactory`` writes plain rows with ``INSERT ... RETURNING`` through the
``AsyncConnection`` (or ``AsyncSession``) of an isolated test and hands back
each inserted row as a ``dict``. Builders are usually made with
``TableFactory.create_builder``::

    builders = {
        "user": TableFactory.create_builder(
            users,
            lambda attrs, factory, conn, faker: {
                "name": faker.name(),
                "email": faker.unique_email(),
            },
        ),
    }
    factory = TableFactory(builders, {}, trx)
    user = await factory.insert("user", {"name": "Jane"})
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from sqlalchemy import Table, insert
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession

from txn_testkit.errors import InsertError

from .base import Factory, InsertPayload, resolve

logger = logging.getLogger(__name__)

TableLike = Any  # Table, or a mapped class exposing __table__
Defaults = Callable[[Dict[str, Any], "TableFactory", Any, Any], Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]]]


def as_table(target: TableLike) -> Table:
    """Return the ``Table`` behind ``target`` (a table or a mapped class)."""
    table = getattr(target, "__table__", target)
    if not isinstance(table, Table):
        raise TypeError(f"Expected a Table or a mapped class, got {target!r}")
    return table


class TableFactory(Factory[Union[AsyncConnection, AsyncSession]]):
    """Factory that inserts rows with SQLAlchemy Core statements."""

    @staticmethod
    def create_builder(
        target: TableLike,
        defaults: Optional[Defaults] = None,
        *,
        auto_insert: bool = True,
    ):
        """Create a builder for ``target``.

        Args:
            target: Table (or mapped class) the builder writes to
            defaults: Optional ``(attrs, factory, connection, faker)`` callable,
                sync or async, returning default column values. It may insert
                dependencies through ``factory`` first.
            auto_insert: When False the builder returns an ``InsertPayload``
                and the factory performs the insertion

        Returns:
            A builder suitable for registration in a ``TableFactory``
        """
        table = as_table(target)

        async def builder(attrs: Dict[str, Any], factory: "TableFactory", connection: Any) -> Any:
            data: Dict[str, Any] = dict(attrs)
            if defaults is not None:
                computed = await resolve(defaults(attrs, factory, connection, factory.faker))
                data = {**computed, **attrs}

            if not auto_insert:
                return InsertPayload(table, data)
            return await factory.insert_row(table, data)

        builder.__name__ = f"build_{table.name}"
        return builder

    async def insert_row(self, target: TableLike, data: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one row and return it as stored, including generated columns.

        Raises:
            InsertError: If the database returned no row
        """
        table = as_table(target)
        stmt = insert(table).values(**data).returning(*table.c)

        async with self._statement_lock:
            result = await self._connection.execute(stmt)
            row = result.mappings().first()

        if row is None:
            raise InsertError(table.name)
        logger.debug(f"Inserted row into '{table.name}'")
        return dict(row)

    async def _insert_deferred(self, payload: InsertPayload) -> Dict[str, Any]:
        return await self.insert_row(payload.target, payload.data)
