"""Outcomes of an isolated test run.

``TransactionIsolator.run_isolated`` never raises for failures it owns; it
reports what happened as one of the outcome types below so callers can
inspect the result before re-raising it with ``raise_for_outcome()``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from txn_testkit.errors import ConnectionReleaseError, IsolationError, IsolationSetupError


@dataclass(frozen=True)
class Passed:
    """The test body completed and the transaction was rolled back and released."""

    def raise_for_outcome(self) -> None:
        return None


@dataclass(frozen=True)
class Failed:
    """The test body raised ``error``; it is re-raised as the same object."""

    error: BaseException

    def raise_for_outcome(self) -> None:
        raise self.error


@dataclass(frozen=True)
class SetupFailed:
    """The run could not reach the test body."""

    error: IsolationSetupError

    @property
    def stage(self) -> str:
        return self.error.stage

    def raise_for_outcome(self) -> None:
        raise self.error


@dataclass(frozen=True)
class ReleaseFailed:
    """The test body passed but rollback or release of its resources failed."""

    error: Union[ConnectionReleaseError, IsolationError]

    def raise_for_outcome(self) -> None:
        raise self.error


IsolationOutcome = Union[Passed, Failed, SetupFailed, ReleaseFailed]
