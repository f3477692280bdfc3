"""
pytest integration for isolated tests.

``wrap_pytest_transaction`` builds a decorator that runs an ``async def`` test
inside a ``TransactionIsolator`` and injects the transaction handle (``trx``)
and any derived fixtures by name::

    isolated = wrap_pytest_transaction(
        lambda: create_engine(settings.database.url),
        setup=create_test_tables,
        isolation_level=IsolationLevel.SERIALIZABLE,
        fixtures={"factory": lambda trx: TableFactory(builders, seeds, trx)},
    )

    @isolated
    async def test_creates_user(trx, factory, tmp_path):
        user = await factory.insert("user")
        ...

Injected names are removed from the signature pytest sees, so ordinary pytest
fixtures (``tmp_path`` above) keep working next to them.
"""

from __future__ import annotations

import functools
import inspect
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, TypeVar

from txn_testkit.core.database import create_engine_from_settings
from txn_testkit.core.levels import IsolationLevel
from txn_testkit.isolation.base import ConnectionSource, Fixtures, SetupFn, TransactionIsolator
from txn_testkit.isolation.fixtures import FixtureComposer, FixtureCreator
from txn_testkit.isolation.sql import SQLAlchemyTransactionIsolator

TestCallable = TypeVar("TestCallable", bound=Callable[..., Awaitable[Any]])


class IsolatedTest:
    """Decorator running pytest coroutine tests in a rolled back transaction."""

    def __init__(
        self,
        connection: Optional[ConnectionSource] = None,
        *,
        setup: Optional[SetupFn] = None,
        isolation_level: Optional[IsolationLevel] = None,
        fixtures: Fixtures = None,
        isolator: Optional[TransactionIsolator] = None,
    ) -> None:
        self.connection = connection if connection is not None else create_engine_from_settings
        self.setup = setup
        self.isolation_level = isolation_level
        self.composer = fixtures if isinstance(fixtures, FixtureComposer) else FixtureComposer(fixtures)
        self.isolator = isolator if isolator is not None else SQLAlchemyTransactionIsolator()

    @property
    def injected_names(self) -> List[str]:
        return [self.composer.transaction_name, *self.composer.names]

    def extend(self, fixtures: Mapping[str, FixtureCreator]) -> "IsolatedTest":
        """Return a decorator that also provides ``fixtures``."""
        return IsolatedTest(
            self.connection,
            setup=self.setup,
            isolation_level=self.isolation_level,
            fixtures=self.composer.extend(fixtures),
            isolator=self.isolator,
        )

    def __call__(self, test_fn: TestCallable) -> TestCallable:
        if not inspect.iscoroutinefunction(test_fn):
            raise TypeError(f"{getattr(test_fn, '__name__', test_fn)!r} must be an 'async def' test function")

        signature = inspect.signature(test_fn)
        injected = self.injected_names
        accepts_kwargs = any(p.kind is p.VAR_KEYWORD for p in signature.parameters.values())
        requested = [name for name in injected if name in signature.parameters]
        visible = [
            param
            for name, param in signature.parameters.items()
            if name not in injected and param.kind is not param.VAR_KEYWORD
        ]

        @functools.wraps(test_fn)
        async def wrapper(*args: Any, **kwargs: Any) -> None:
            async def body(context: Dict[str, Any]) -> None:
                values = context if accepts_kwargs else {name: context[name] for name in requested}
                await test_fn(*args, **kwargs, **values)

            await self.isolator.run(
                self.connection,
                body,
                setup=self.setup,
                isolation_level=self.isolation_level,
                fixtures=self.composer,
            )

        wrapper.__signature__ = signature.replace(parameters=visible)
        # pytest would otherwise read the original signature through __wrapped__
        del wrapper.__wrapped__
        return wrapper

    def __repr__(self) -> str:
        return f"IsolatedTest(isolator={type(self.isolator).__name__}, injected={self.injected_names})"


def wrap_pytest_transaction(
    connection: Optional[ConnectionSource] = None,
    *,
    setup: Optional[SetupFn] = None,
    isolation_level: Optional[IsolationLevel] = None,
    fixtures: Fixtures = None,
    isolator: Optional[TransactionIsolator] = None,
) -> IsolatedTest:
    """Create an ``IsolatedTest`` decorator.

    Args:
        connection: Engine, or a zero-argument callable returning one; the
            isolator disposes it after every test. Defaults to an engine
            built from the ``database_url`` setting
        setup: Optional callback run with the transaction before each test,
            e.g. one creating the schema
        isolation_level: Transaction isolation level; defaults to the setting
        fixtures: Named creators deriving values from the transaction
        isolator: Isolator to run with; ``SQLAlchemyTransactionIsolator`` by default

    Returns:
        Decorator for ``async def`` tests
    """
    return IsolatedTest(
        connection,
        setup=setup,
        isolation_level=isolation_level,
        fixtures=fixtures,
        isolator=isolator,
    )


def extend_with_fixtures(wrapped: IsolatedTest, fixtures: Mapping[str, FixtureCreator]) -> IsolatedTest:
    """Return ``wrapped`` with additional fixture creators."""
    return wrapped.extend(fixtures)
