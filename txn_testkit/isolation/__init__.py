"""
Transaction isolation for tests.

Modules:
- base: TransactionIsolator state machine (acquire, begin, setup, run, rollback, release)
- sql: SQLAlchemy and SQLModel adapters
- fixtures: FixtureComposer for values derived from the transaction
- outcome: Passed / Failed / SetupFailed / ReleaseFailed
"""

from txn_testkit.core.levels import IsolationLevel

from .base import TransactionIsolator
from .fixtures import FixtureComposer, FixtureCreator
from .outcome import Failed, IsolationOutcome, Passed, ReleaseFailed, SetupFailed
from .sql import SQLAlchemyTransactionIsolator, SQLModelTransactionIsolator

__all__ = [
    "Failed",
    "FixtureComposer",
    "FixtureCreator",
    "IsolationLevel",
    "IsolationOutcome",
    "Passed",
    "ReleaseFailed",
    "SQLAlchemyTransactionIsolator",
    "SQLModelTransactionIsolator",
    "SetupFailed",
    "TransactionIsolator",
]
