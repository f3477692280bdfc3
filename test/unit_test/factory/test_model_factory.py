"""Unit tests for ModelFactory with a mocked session."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from test.schema import User
from txn_testkit.factory import InsertPayload, ModelFactory


def _session():
    session = MagicMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    return session


def _defaults(attrs, factory, session, faker):
    return {"name": "Default", "email": faker.unique_email()}


class TestModelFactoryPersist:
    """Test add/flush/refresh."""

    async def test_persist(self):
        session = _session()
        factory = ModelFactory({}, {}, session)
        user = User(name="Jane", email="jane@example.com")

        persisted = await factory.persist(user)

        assert persisted is user
        session.add.assert_called_once_with(user)
        session.flush.assert_awaited_once()
        session.refresh.assert_awaited_once_with(user)

    def test_session_property(self):
        session = _session()

        assert ModelFactory({}, {}, session).session is session


class TestModelFactoryBuilder:
    """Test builders created with create_builder."""

    def test_builder_name(self):
        assert ModelFactory.create_builder(User).__name__ == "build_User"

    async def test_builder_persists_instance(self):
        session = _session()
        factory = ModelFactory({"user": ModelFactory.create_builder(User, _defaults)}, {}, session)

        user = await factory.insert("user", {"role": "admin"})

        assert isinstance(user, User)
        assert user.name == "Default"
        assert user.role == "admin"
        session.add.assert_called_with(user)

    async def test_transient_instance_is_persisted_by_factory(self):
        session = _session()
        factory = ModelFactory({"user": ModelFactory.create_builder(User, _defaults, auto_insert=False)}, {}, session)

        user = await factory.insert("user", {"name": "Jane"})

        assert user.name == "Jane"
        session.add.assert_called_once_with(user)
        session.flush.assert_awaited_once()

    async def test_deferred_builder_returns_unsaved_instance(self):
        session = _session()
        builder = ModelFactory.create_builder(User, _defaults, auto_insert=False)
        factory = ModelFactory({"user": builder}, {}, session)

        user = await builder({}, factory, session)

        assert isinstance(user, User)
        session.add.assert_not_called()

    async def test_insert_payload_is_built_and_persisted(self):
        session = _session()
        payload = InsertPayload(User, {"name": "Jane", "email": "jane@example.com"})
        factory = ModelFactory({"user": lambda attrs, f, s: payload}, {}, session)

        user = await factory.insert("user")

        assert isinstance(user, User)
        assert user.email == "jane@example.com"
        session.add.assert_called_once_with(user)

    async def test_other_results_are_returned_as_is(self):
        session = _session()
        factory = ModelFactory({"count": lambda attrs, f, s: 3}, {}, session)

        assert await factory.insert("count") == 3
        session.add.assert_not_called()
