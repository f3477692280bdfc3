"""End-to-end tests against PostgreSQL in a testcontainer.

Enabled with ``DATABASE__ENABLE_POSTGRES_TESTS=true``; requires Docker.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy import text

from test.e2e_test.databases import count_rows
from test.factories import table_factory
from test.schema import User, create_test_tables
from test.settings import test_settings
from txn_testkit.core.config import Settings
from txn_testkit.core.database import create_engine
from txn_testkit.core.levels import IsolationLevel
from txn_testkit.isolation import SQLAlchemyTransactionIsolator
from txn_testkit.testing import wrap_pytest_transaction

pytestmark = pytest.mark.skipif(
    not test_settings.database.enable_postgres_tests,
    reason="set DATABASE__ENABLE_POSTGRES_TESTS=true to run PostgreSQL tests",
)


@pytest.fixture(scope="module")
def postgres_url():
    from testcontainers.postgres import PostgresContainer

    with PostgresContainer(test_settings.database.postgres_image) as pg:
        yield pg.get_connection_url()


async def _users_table_exists(url: str) -> bool:
    engine = create_engine(url)
    try:
        async with engine.connect() as conn:
            result = await conn.execute(text("SELECT to_regclass('public.users')"))
            return result.scalar_one() is not None
    finally:
        await engine.dispose()


class TestPostgresIsolation:
    """Test isolation levels and rollback on PostgreSQL."""

    @pytest.mark.parametrize("level", list(IsolationLevel))
    async def test_level_is_applied(self, postgres_url: str, level: IsolationLevel):
        seen = []

        async def body(context):
            result = await context["trx"].execute(text("SHOW transaction_isolation"))
            seen.append(result.scalar_one())

        await SQLAlchemyTransactionIsolator().run(lambda: create_engine(postgres_url), body, isolation_level=level)

        assert seen == [level.value.lower()]

    async def test_schema_and_rows_are_rolled_back(self, postgres_url: str):
        counts = []

        async def body(context):
            await context["factory"].insert_many(5, "post")
            counts.append(await count_rows(context["trx"], User))

        await SQLAlchemyTransactionIsolator().run(
            lambda: create_engine(postgres_url),
            body,
            setup=create_test_tables,
            isolation_level=IsolationLevel.REPEATABLE_READ,
            fixtures={"factory": table_factory},
        )

        assert counts == [5]
        assert not await _users_table_exists(postgres_url)

    async def test_failure_is_rolled_back(self, postgres_url: str):
        async def body(context):
            await context["factory"].insert("user")
            raise AssertionError("expected failure")

        with pytest.raises(AssertionError, match="expected failure"):
            await SQLAlchemyTransactionIsolator().run(
                lambda: create_engine(postgres_url),
                body,
                setup=create_test_tables,
                fixtures={"factory": table_factory},
            )

        assert not await _users_table_exists(postgres_url)


class TestZeroConfig:
    """Test the decorator built without arguments."""

    async def test_defaults_run_with_repeatable_read(self, postgres_url: str):
        seen = []
        settings = Settings(_env_file=None, database_url=postgres_url)

        @wrap_pytest_transaction()
        async def sample(trx):
            result = await trx.execute(text("SHOW transaction_isolation"))
            seen.append(result.scalar_one())

        with patch("txn_testkit.core.database.utils.get_settings", return_value=settings), patch(
            "txn_testkit.isolation.base.get_settings", return_value=settings
        ):
            await sample()

        assert seen == ["repeatable read"]
