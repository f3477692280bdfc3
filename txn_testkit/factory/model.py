"""
SQLModel factory.

``ModelFactory`` persists SQLModel table models through an ``AsyncSession``
that lives inside the isolated test's transaction. Entities are flushed and
refreshed, never committed, so generated keys are available immediately and
everything disappears with the rollback.

A builder may return an unsaved model instance instead of persisting it; the
factory treats a transient instance like any other deferred payload.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Type, TypeVar, Union

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from .base import Builder, Factory, InsertPayload, Seed, resolve

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
Defaults = Callable[[Dict[str, Any], "ModelFactory", Any, Any], Union[Mapping[str, Any], Awaitable[Mapping[str, Any]]]]


class ModelFactory(Factory[AsyncSession]):
    """Factory that persists SQLModel instances with the ORM."""

    def __init__(
        self,
        builders: Mapping[str, Builder],
        seeds: Optional[Mapping[str, Seed]],
        connection: Union[AsyncSession, AsyncConnection],
        **kwargs: Any,
    ) -> None:
        """Initialize the factory.

        Args:
            builders: Builder registry
            seeds: Seed registry
            connection: Session of the isolated test, or its connection; a
                connection is wrapped in a session that joins its transaction
            **kwargs: Forwarded to ``Factory`` (``faker``)
        """
        if isinstance(connection, AsyncConnection):
            connection = AsyncSession(bind=connection, expire_on_commit=False)
        super().__init__(builders, seeds, connection, **kwargs)

    @property
    def session(self) -> AsyncSession:
        return self._connection

    @staticmethod
    def create_builder(
        model: Type[ModelType],
        defaults: Optional[Defaults] = None,
        *,
        auto_insert: bool = True,
    ):
        """Create a builder for the SQLModel table ``model``.

        Args:
            model: SQLModel class declared with ``table=True``
            defaults: Optional ``(attrs, factory, session, faker)`` callable,
                sync or async, returning default field values
            auto_insert: When False the builder returns the unsaved instance
                and the factory persists it

        Returns:
            A builder suitable for registration in a ``ModelFactory``
        """

        async def builder(attrs: Dict[str, Any], factory: "ModelFactory", session: Any) -> Any:
            data: Dict[str, Any] = dict(attrs)
            if defaults is not None:
                computed = await resolve(defaults(attrs, factory, session, factory.faker))
                data = {**computed, **attrs}

            instance = model(**data)
            if not auto_insert:
                return instance
            return await factory.persist(instance)

        builder.__name__ = f"build_{model.__name__}"
        return builder

    async def persist(self, instance: ModelType) -> ModelType:
        """Add, flush and refresh ``instance`` inside the current transaction."""
        async with self._statement_lock:
            self.session.add(instance)
            await self.session.flush()
            await self.session.refresh(instance)
        logger.debug(f"Persisted {type(instance).__name__}")
        return instance

    def _is_deferred(self, result: Any) -> bool:
        if isinstance(result, InsertPayload):
            return True
        state = sa_inspect(result, raiseerr=False) if isinstance(result, SQLModel) else None
        return state is not None and state.transient

    async def _insert_deferred(self, payload: Union[InsertPayload, SQLModel]) -> Any:
        if isinstance(payload, InsertPayload):
            payload = payload.target(**payload.data)
        return await self.persist(payload)
