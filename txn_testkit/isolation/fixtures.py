"""Fixture composition for isolated tests.

A fixture creator receives the transaction handle of the running test and
returns (or resolves to) a value, typically a factory bound to that handle::

    composer = FixtureComposer({"factory": lambda trx: TableFactory(builders, seeds, trx)})
    context = await composer.compose(trx)
    # {"trx": trx, "factory": <TableFactory ...>}
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from txn_testkit.factory.base import resolve

FixtureCreator = Callable[[Any], Union[Any, Awaitable[Any]]]

DEFAULT_TRANSACTION_NAME = "trx"


class FixtureComposer:
    """Ordered set of named fixture creators layered on a transaction."""

    def __init__(
        self,
        creators: Optional[Mapping[str, FixtureCreator]] = None,
        *,
        transaction_name: str = DEFAULT_TRANSACTION_NAME,
    ) -> None:
        creators = dict(creators or {})
        if transaction_name in creators:
            raise ValueError(f"Fixture name '{transaction_name}' is reserved for the transaction")
        self._creators: Dict[str, FixtureCreator] = creators
        self.transaction_name = transaction_name

    @property
    def names(self) -> List[str]:
        return list(self._creators)

    def extend(self, creators: Mapping[str, FixtureCreator]) -> "FixtureComposer":
        """Return a new composer with ``creators`` merged in; later entries win."""
        return FixtureComposer({**self._creators, **creators}, transaction_name=self.transaction_name)

    async def compose(self, transaction: Any) -> Dict[str, Any]:
        """Evaluate each creator once, in declaration order.

        Returns:
            Mapping of the transaction name to ``transaction`` plus one entry
            per fixture
        """
        context: Dict[str, Any] = {self.transaction_name: transaction}
        for name, creator in self._creators.items():
            context[name] = await resolve(creator(transaction))
        return context

    def __len__(self) -> int:
        return len(self._creators)

    def __repr__(self) -> str:
        return f"FixtureComposer(transaction_name={self.transaction_name!r}, fixtures={self.names})"
