"""txn-testkit.

Test-data factories and transaction isolation for test suites that run
against a real database through async SQLAlchemy.

High-level architecture
-----------------------

Every isolated test runs inside exactly one database transaction that is
always rolled back, so tests may write freely without leaking state into
each other. Test data is produced by factories: named builders that fill in
realistic defaults (via Faker and named sequences), accept overrides, and may
create the rows they depend on.

Core subpackages
----------------

- ``txn_testkit.isolation``:

  - ``TransactionIsolator`` state machine and its SQLAlchemy/SQLModel adapters.
  - ``FixtureComposer`` deriving values such as factories from the transaction.

- ``txn_testkit.factory``:

  - ``Factory`` dispatch (``insert``, ``insert_many``, ``seed``).
  - ``TableFactory`` for Core tables and ``ModelFactory`` for SQLModel models.

- ``txn_testkit.core``:

  - Settings, logging configuration and database engine helpers.

Typical workflow
----------------

1. Declare builders (``TableFactory.create_builder``) and seeds.
2. Decorate tests with ``wrap_pytest_transaction(...)``, passing a fixture
   creator that binds a factory to the transaction.
3. Insert data in the test body; everything is rolled back afterwards.
"""

from txn_testkit.core.levels import IsolationLevel
from txn_testkit.errors import (
    AdapterContractError,
    BuilderNotFoundError,
    ConnectionReleaseError,
    FactoryError,
    HarnessError,
    InsertError,
    IsolationError,
    IsolationSetupError,
    RollbackError,
    SeedNotFoundError,
)
from txn_testkit.factory import Factory, InsertPayload, ModelFactory, TableFactory
from txn_testkit.faker import FakerFactory
from txn_testkit.isolation import (
    Failed,
    FixtureComposer,
    IsolationOutcome,
    Passed,
    ReleaseFailed,
    SetupFailed,
    SQLAlchemyTransactionIsolator,
    SQLModelTransactionIsolator,
    TransactionIsolator,
)
from txn_testkit.sequences import SequenceRegistry
from txn_testkit.testing import IsolatedTest, extend_with_fixtures, wrap_pytest_transaction

__all__ = [
    "AdapterContractError",
    "BuilderNotFoundError",
    "ConnectionReleaseError",
    "Factory",
    "FactoryError",
    "Failed",
    "FakerFactory",
    "FixtureComposer",
    "HarnessError",
    "InsertError",
    "InsertPayload",
    "IsolatedTest",
    "IsolationError",
    "IsolationLevel",
    "IsolationOutcome",
    "IsolationSetupError",
    "ModelFactory",
    "Passed",
    "ReleaseFailed",
    "RollbackError",
    "SQLAlchemyTransactionIsolator",
    "SQLModelTransactionIsolator",
    "SeedNotFoundError",
    "SequenceRegistry",
    "SetupFailed",
    "TableFactory",
    "TransactionIsolator",
    "extend_with_fixtures",
    "wrap_pytest_transaction",
]
