"""Error types for the testkit.

Defines a small hierarchy of exceptions raised by factories and transaction
isolators to signal configuration mistakes (unknown builder or seed names),
failed inserts, and resource failures around an isolated test.

Errors raised by a test body are never wrapped: the isolator re-raises the
original object once the rollback has completed.
"""

from __future__ import annotations

from typing import Optional


class HarnessError(Exception):
    """Base error for all testkit exceptions."""


class FactoryError(HarnessError):
    """Base error for factory configuration and insertion failures."""


class BuilderNotFoundError(FactoryError):
    """Raised when a factory is asked for a builder it does not have."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Builder '{name}' is not registered in this factory")


class SeedNotFoundError(FactoryError):
    """Raised when a factory is asked for a seed it does not have."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Seed '{name}' is not registered in this factory")


class InsertError(FactoryError):
    """Raised when an insert statement does not return the inserted row."""

    def __init__(self, table: str) -> None:
        self.table = table
        super().__init__(f"Failed to insert into '{table}'")


class IsolationError(HarnessError):
    """Base error for transaction isolation resource failures."""


class IsolationSetupError(IsolationError):
    """Raised when an isolated test could not start.

    ``stage`` is one of ``acquire``, ``begin``, ``setup`` or ``fixtures``; the
    underlying failure is chained as ``__cause__``.
    """

    def __init__(self, stage: str, cause: Optional[BaseException] = None) -> None:
        self.stage = stage
        detail = f": {cause!r}" if cause is not None else ""
        super().__init__(f"Isolated test failed during {stage}{detail}")


class RollbackError(IsolationError):
    """Raised when the forced rollback of a passing test failed."""


class ConnectionReleaseError(IsolationError):
    """Raised when the connection of a passing test could not be released."""


class AdapterContractError(IsolationError):
    """Raised when a transaction adapter swallowed the rollback signal.

    The adapter returned normally although the body raised, so the driver may
    have taken its commit path.
    """
