"""
Base factory interfaces and dispatch.

This module provides the driver-independent part of the test-data factories:
the builder/seed registry, name lookup with descriptive errors, attribute
handling and the concurrent ``insert_many`` fan-out. Driver-specific
subclasses only decide how a deferred payload is written.

Builders and seeds share one calling convention::

    builder(attrs: dict, factory: Factory, connection) -> entity | Awaitable[entity]
    seed(attrs: dict, factory: Factory, connection) -> result | Awaitable[result]

A builder either persists the entity itself and returns it, or returns a
deferred payload (an ``InsertPayload``) and lets the factory insert it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    List,
    Mapping,
    Optional,
    TypeVar,
    Union,
)

from txn_testkit.errors import BuilderNotFoundError, SeedNotFoundError
from txn_testkit.faker import FakerFactory
from txn_testkit.faker import faker as default_faker

logger = logging.getLogger(__name__)

ConnectionType = TypeVar("ConnectionType")
SeedFn = TypeVar("SeedFn", bound=Callable[..., Any])

Attrs = Dict[str, Any]
Builder = Callable[[Attrs, "Factory", Any], Union[Any, Awaitable[Any]]]
Seed = Callable[[Attrs, "Factory", Any], Union[Any, Awaitable[Any]]]
AttrsSource = Union[Mapping[str, Any], Callable[..., Mapping[str, Any]], None]


@dataclass(frozen=True)
class InsertPayload:
    """A row a builder wants the factory to insert on its behalf."""

    target: Any
    data: Dict[str, Any] = field(default_factory=dict)


async def resolve(value: Any) -> Any:
    """Await ``value`` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def _expects_faker(fn: Callable[..., Any]) -> bool:
    """Whether an attrs callable requires a second positional argument.

    Optional parameters are left alone, so ``lambda i, prefix="User": ...``
    keeps its default instead of receiving the faker.
    """
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return False
    positional = [p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)]
    if len(positional) >= 2:
        return positional[1].default is inspect.Parameter.empty
    return any(p.kind == p.VAR_POSITIONAL for p in params)


class Factory(ABC, Generic[ConnectionType]):
    """Registry of named builders and seeds bound to one connection.

    The registry is fixed at construction. The only other state is the
    connection the factory writes through and a lock that keeps statements
    issued by concurrently running builders from interleaving on it.
    """

    def __init__(
        self,
        builders: Mapping[str, Builder],
        seeds: Optional[Mapping[str, Seed]],
        connection: ConnectionType,
        *,
        faker: Optional[FakerFactory] = None,
    ) -> None:
        self._builders: Mapping[str, Builder] = MappingProxyType(dict(builders))
        self._seeds: Mapping[str, Seed] = MappingProxyType(dict(seeds or {}))
        self._connection = connection
        self._statement_lock = asyncio.Lock()
        self.faker = faker if faker is not None else default_faker

    @staticmethod
    def create_seed(seed_fn: SeedFn) -> SeedFn:
        """Return ``seed_fn`` unchanged; marks a function as a seed for readers and type checkers."""
        return seed_fn

    @property
    def connection(self) -> ConnectionType:
        return self._connection

    @property
    def builder_names(self) -> List[str]:
        return list(self._builders)

    @property
    def seed_names(self) -> List[str]:
        return list(self._seeds)

    def _get_builder(self, name: str) -> Builder:
        try:
            return self._builders[name]
        except KeyError:
            raise BuilderNotFoundError(name) from None

    def _get_seed(self, name: str) -> Seed:
        try:
            return self._seeds[name]
        except KeyError:
            raise SeedNotFoundError(name) from None

    async def insert(self, builder_name: str, attrs: Optional[Mapping[str, Any]] = None) -> Any:
        """Build and persist one entity with the named builder.

        Args:
            builder_name: Registered builder name
            attrs: Attribute overrides; they win over builder defaults

        Returns:
            The persisted entity

        Raises:
            BuilderNotFoundError: If no builder is registered under ``builder_name``
        """
        builder = self._get_builder(builder_name)
        result = await resolve(builder(dict(attrs or {}), self, self._connection))

        if self._is_deferred(result):
            logger.debug(f"Builder '{builder_name}' deferred insertion to the factory")
            return await self._insert_deferred(result)
        return result

    async def insert_many(self, count: int, builder_name: str, attrs: AttrsSource = None) -> List[Any]:
        """Insert ``count`` entities with the named builder.

        ``attrs`` is either one mapping used for every entity or a callable
        taking the zero-based index and returning the attributes for that
        entity. A callable whose second positional parameter has no default
        also receives the factory's faker. The inserts run
        concurrently; results come back in index order. The first failure
        cancels the remaining inserts and is raised.

        Raises:
            BuilderNotFoundError: If no builder is registered under ``builder_name``
            ValueError: If ``count`` is negative
        """
        self._get_builder(builder_name)
        if count < 0:
            raise ValueError(f"count must be zero or positive, got {count}")
        if count == 0:
            return []

        batch = [self._attrs_for(attrs, index) for index in range(count)]
        tasks = [asyncio.ensure_future(self.insert(builder_name, item_attrs)) for item_attrs in batch]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    def _attrs_for(self, attrs: AttrsSource, index: int) -> Optional[Mapping[str, Any]]:
        if callable(attrs):
            if _expects_faker(attrs):
                return attrs(index, self.faker)
            return attrs(index)
        return attrs

    async def seed(self, seed_name: str, attrs: Optional[Mapping[str, Any]] = None) -> Any:
        """Run the named seed and return whatever it builds.

        Raises:
            SeedNotFoundError: If no seed is registered under ``seed_name``
        """
        seed = self._get_seed(seed_name)
        logger.debug(f"Running seed '{seed_name}'")
        return await resolve(seed(dict(attrs or {}), self, self._connection))

    def _is_deferred(self, result: Any) -> bool:
        return isinstance(result, InsertPayload)

    @abstractmethod
    async def _insert_deferred(self, payload: Any) -> Any:
        """Persist a deferred payload returned by a builder and return the stored entity."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(builders={self.builder_names}, seeds={self.seed_names})"
