"""Unit tests for the pytest decorator."""

from __future__ import annotations

import inspect

import pytest

from test.doubles import RecordingIsolator
from txn_testkit.core.levels import IsolationLevel
from txn_testkit.testing import IsolatedTest, extend_with_fixtures, wrap_pytest_transaction


@pytest.fixture
def isolator() -> RecordingIsolator:
    return RecordingIsolator()


@pytest.fixture
def isolated(isolator: RecordingIsolator) -> IsolatedTest:
    return wrap_pytest_transaction(
        "engine",
        isolation_level=IsolationLevel.SERIALIZABLE,
        fixtures={"factory": lambda trx: ("factory", trx)},
        isolator=isolator,
    )


class TestSignature:
    """Test the signature pytest sees."""

    def test_injected_names_are_hidden(self, isolated: IsolatedTest):
        async def sample(trx, factory, tmp_path, monkeypatch):
            pass

        wrapped = isolated(sample)

        assert list(inspect.signature(wrapped).parameters) == ["tmp_path", "monkeypatch"]
        assert not hasattr(wrapped, "__wrapped__")
        assert wrapped.__name__ == "sample"

    def test_var_keyword_is_hidden(self, isolated: IsolatedTest):
        async def sample(tmp_path, **kwargs):
            pass

        assert list(inspect.signature(isolated(sample)).parameters) == ["tmp_path"]

    def test_wrapper_is_coroutine_function(self, isolated: IsolatedTest):
        async def sample(trx):
            pass

        assert inspect.iscoroutinefunction(isolated(sample))

    def test_marks_are_kept(self, isolated: IsolatedTest):
        @pytest.mark.filterwarnings("ignore")
        async def sample(trx):
            pass

        assert [mark.name for mark in isolated(sample).pytestmark] == ["filterwarnings"]

    def test_sync_function_is_rejected(self, isolated: IsolatedTest):
        def sample(trx):
            pass

        with pytest.raises(TypeError):
            isolated(sample)


class TestInjection:
    """Test values passed to the decorated test."""

    async def test_requested_values_only(self, isolated: IsolatedTest, isolator: RecordingIsolator):
        received = {}

        async def sample(trx, tmp_value):
            received.update(trx=trx, tmp_value=tmp_value)

        await isolated(sample)(tmp_value=5)

        assert received == {"trx": isolator.transactions[0], "tmp_value": 5}

    async def test_var_keyword_receives_everything(self, isolated: IsolatedTest, isolator: RecordingIsolator):
        received = {}

        async def sample(**kwargs):
            received.update(kwargs)

        await isolated(sample)()

        transaction = isolator.transactions[0]
        assert received == {"trx": transaction, "factory": ("factory", transaction)}

    async def test_runs_inside_isolator(self, isolated: IsolatedTest, isolator: RecordingIsolator):
        async def sample(trx):
            pass

        await isolated(sample)()

        assert isolator.names == ["begin", "rollback", "destroy"]
        assert isolator.events[0] == ("begin", "engine", IsolationLevel.SERIALIZABLE)

    async def test_positional_arguments_pass_through(self, isolated: IsolatedTest):
        received = []

        async def sample(self_like, trx):
            received.append(self_like)

        await isolated(sample)("instance")

        assert received == ["instance"]

    async def test_test_failure_is_reraised(self, isolated: IsolatedTest, isolator: RecordingIsolator):
        async def sample(trx):
            assert trx is None, "transaction was injected"

        with pytest.raises(AssertionError, match="transaction was injected"):
            await isolated(sample)()

        assert isolator.names[-1] == "destroy"

    async def test_setup_is_run(self, isolator: RecordingIsolator):
        prepared = []
        isolated = wrap_pytest_transaction("engine", setup=prepared.append, isolator=isolator)

        async def sample(trx):
            assert prepared == [trx]

        await isolated(sample)()


class TestExtend:
    """Test fixture extension."""

    async def test_extend_adds_fixtures(self, isolated: IsolatedTest, isolator: RecordingIsolator):
        extended = isolated.extend({"clock": lambda trx: "now"})
        received = {}

        async def sample(factory, clock):
            received.update(factory=factory, clock=clock)

        await extended(sample)()

        assert received["clock"] == "now"
        assert received["factory"][0] == "factory"
        assert isolated.injected_names == ["trx", "factory"]
        assert extended.injected_names == ["trx", "factory", "clock"]

    def test_extend_with_fixtures(self, isolated: IsolatedTest):
        extended = extend_with_fixtures(isolated, {"clock": lambda trx: "now"})

        assert isinstance(extended, IsolatedTest)
        assert extended.isolator is isolated.isolator
        assert extended.isolation_level is IsolationLevel.SERIALIZABLE

    def test_extend_rejects_transaction_name(self, isolated: IsolatedTest):
        with pytest.raises(ValueError):
            isolated.extend({"trx": lambda trx: trx})

    def test_default_isolator(self):
        from txn_testkit.isolation import SQLAlchemyTransactionIsolator

        assert isinstance(wrap_pytest_transaction("engine").isolator, SQLAlchemyTransactionIsolator)

    def test_default_connection_comes_from_settings(self):
        from txn_testkit.core.database import create_engine_from_settings

        assert wrap_pytest_transaction().connection is create_engine_from_settings
        assert wrap_pytest_transaction("engine").connection == "engine"
