"""
Transaction isolation for database-backed tests.

``TransactionIsolator`` runs one test inside one native transaction and
guarantees that nothing the test wrote survives it. A run goes through these
steps:

1. Acquire: resolve the connection resource (or call its factory)
2. Begin: ``transact()`` opens a transaction at the requested level
3. Setup: run the optional setup callback with the transaction handle
4. Run: compose fixtures, then call the test body with the context
5. Force-Rollback: raise a private per-run signal out of the transaction
   body so the adapter aborts instead of committing
6. Release: ``destroy()`` the connection resource, whatever happened before

The result is reported as an ``IsolationOutcome``; ``run()`` re-raises it.

Adapters implement two methods:

- ``transact(connection, isolation_level, body)``: call ``body(handle)``
  exactly once inside a transaction and let everything it raises propagate
- ``destroy(connection)``: release the connection resource
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Generic, Mapping, Optional, Tuple, TypeVar, Union

from txn_testkit.core.config import get_settings
from txn_testkit.core.levels import IsolationLevel
from txn_testkit.errors import (
    AdapterContractError,
    ConnectionReleaseError,
    IsolationSetupError,
    RollbackError,
)
from txn_testkit.factory.base import resolve

from .fixtures import FixtureComposer, FixtureCreator
from .outcome import Failed, IsolationOutcome, Passed, ReleaseFailed, SetupFailed

logger = logging.getLogger(__name__)

ConnectionType = TypeVar("ConnectionType")
TransactionType = TypeVar("TransactionType")

ConnectionSource = Union[Any, Callable[[], Any], Callable[[], Awaitable[Any]]]
SetupFn = Callable[[Any], Union[Any, Awaitable[Any]]]
TestFn = Callable[[Dict[str, Any]], Awaitable[Any]]
TransactionBody = Callable[[Any], Awaitable[None]]
Fixtures = Union[FixtureComposer, Mapping[str, FixtureCreator], None]

STAGE_ACQUIRE = "acquire"
STAGE_BEGIN = "begin"
STAGE_SETUP = "setup"
STAGE_FIXTURES = "fixtures"
STAGE_RUN = "run"
STAGE_DONE = "done"

_SETUP_STAGES = (STAGE_BEGIN, STAGE_SETUP, STAGE_FIXTURES)


class _RollbackSignal(Exception):
    """Raised out of the transaction body after a passing test to force a rollback."""


class _RunState:
    """Progress of one run, written by the transaction body."""

    def __init__(self) -> None:
        self.stage = STAGE_BEGIN
        self.entered = False
        self.error: Optional[BaseException] = None


def _chain(error: BaseException, cause: BaseException) -> BaseException:
    error.__cause__ = cause
    return error


def _setup_failure(stage: str, cause: BaseException) -> SetupFailed:
    return SetupFailed(_chain(IsolationSetupError(stage, cause), cause))


class TransactionIsolator(ABC, Generic[ConnectionType, TransactionType]):
    """Runs test bodies inside a transaction that is always rolled back."""

    @abstractmethod
    async def transact(
        self,
        connection: ConnectionType,
        isolation_level: IsolationLevel,
        body: TransactionBody,
    ) -> None:
        """Call ``body(transaction)`` once inside a transaction at ``isolation_level``.

        Everything ``body`` raises must propagate. Committing is never required:
        a passing body always ends by raising.
        """

    @abstractmethod
    async def destroy(self, connection: ConnectionType) -> None:
        """Release ``connection``."""

    async def run_isolated(
        self,
        connection: ConnectionSource,
        test_fn: TestFn,
        *,
        setup: Optional[SetupFn] = None,
        isolation_level: Optional[IsolationLevel] = None,
        fixtures: Fixtures = None,
    ) -> IsolationOutcome:
        """Run ``test_fn`` in an isolated transaction and report the outcome.

        Args:
            connection: Connection resource, or a zero-argument callable (sync
                or async) returning one; called once per run
            test_fn: Async test body receiving the context mapping (the
                transaction under ``trx`` plus one entry per fixture)
            setup: Optional callback run with the transaction before fixtures
            isolation_level: Level for the transaction; defaults to the
                ``isolation_level`` setting
            fixtures: Fixture creators or a prepared ``FixtureComposer``

        Returns:
            ``Passed``, ``Failed``, ``SetupFailed`` or ``ReleaseFailed``

        Raises:
            BaseException: Interrupts such as ``asyncio.CancelledError`` are
                re-raised unchanged once the transaction was rolled back and
                the connection released
        """
        level = IsolationLevel(isolation_level) if isolation_level is not None else get_settings().isolation_level
        composer = fixtures if isinstance(fixtures, FixtureComposer) else FixtureComposer(fixtures)

        try:
            resource = await resolve(connection() if callable(connection) else connection)
        except Exception as exc:
            logger.debug(f"Acquiring the connection failed: {exc!r}")
            return _setup_failure(STAGE_ACQUIRE, exc)
        logger.debug(f"Acquired {type(resource).__name__}, beginning {level.value} transaction")

        sentinel = _RollbackSignal()
        state = _RunState()

        async def body(transaction: TransactionType) -> None:
            state.entered = True
            try:
                state.stage = STAGE_SETUP
                if setup is not None:
                    await resolve(setup(transaction))
                state.stage = STAGE_FIXTURES
                context = await composer.compose(transaction)
                state.stage = STAGE_RUN
                await test_fn(context)
            except BaseException as exc:
                state.error = exc
                raise
            state.stage = STAGE_DONE
            raise sentinel

        raised: Optional[BaseException] = None
        try:
            await self.transact(resource, level, body)
        except BaseException as exc:
            raised = exc

        outcome, interrupt = self._classify(state, raised, sentinel)

        try:
            await self.destroy(resource)
        except Exception as exc:
            if isinstance(outcome, Passed):
                error = ConnectionReleaseError(f"Failed to release {type(resource).__name__}: {exc!r}")
                outcome = ReleaseFailed(_chain(error, exc))
            else:
                logger.warning(f"Releasing the connection failed after an earlier failure: {exc!r}")
        else:
            logger.debug(f"Released {type(resource).__name__}")

        if interrupt is not None:
            raise interrupt
        return outcome

    def _classify(
        self,
        state: _RunState,
        raised: Optional[BaseException],
        sentinel: _RollbackSignal,
    ) -> Tuple[Optional[IsolationOutcome], Optional[BaseException]]:
        """Turn the state of a finished transaction into ``(outcome, interrupt)``."""
        error = state.error
        if error is not None:
            if raised is not error:
                logger.warning(f"Transaction adapter reported {raised!r} after the run failed with {error!r}")
            if not isinstance(error, Exception):
                return None, error
            logger.debug(f"Rolled back after failure during {state.stage}")
            if state.stage in _SETUP_STAGES:
                return _setup_failure(state.stage, error), None
            return Failed(error), None

        if raised is sentinel:
            logger.debug("Rolled back passing test")
            return Passed(), None

        if raised is not None:
            if not isinstance(raised, Exception):
                return None, raised
            if not state.entered:
                return _setup_failure(STAGE_BEGIN, raised), None
            rollback_error = RollbackError(f"Rolling back the test transaction failed: {raised!r}")
            return ReleaseFailed(_chain(rollback_error, raised)), None

        if not state.entered:
            contract_error = AdapterContractError(f"{type(self).__name__}.transact returned without calling the body")
            return _setup_failure(STAGE_BEGIN, contract_error), None
        contract_error = AdapterContractError(
            f"{type(self).__name__}.transact returned normally after the rollback signal; "
            "the transaction may have been committed"
        )
        return ReleaseFailed(contract_error), None

    async def run(
        self,
        connection: ConnectionSource,
        test_fn: TestFn,
        *,
        setup: Optional[SetupFn] = None,
        isolation_level: Optional[IsolationLevel] = None,
        fixtures: Fixtures = None,
    ) -> None:
        """Like ``run_isolated`` but re-raise any failure."""
        outcome = await self.run_isolated(
            connection,
            test_fn,
            setup=setup,
            isolation_level=isolation_level,
            fixtures=fixtures,
        )
        outcome.raise_for_outcome()
