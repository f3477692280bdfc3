"""Faker integration for builders.

``FakerFactory`` wraps a ``faker.Faker`` instance and adds the helpers test
data needs on top of random values: named sequences, collision-free emails,
usernames and identifiers, and consistent timestamp pairs. Every attribute
that is not defined here is delegated to the wrapped Faker, so
``faker.name()`` and ``faker.sentence()`` keep working.

Builders reach it through ``factory.faker``; builders made with
``create_builder`` also receive it as the fourth argument of their defaults
callable.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from faker import Faker

from txn_testkit.core.config import get_settings
from txn_testkit.sequences import DEFAULT_SEQUENCE, SequenceRegistry

_CENTS = Decimal("0.01")


class FakerFactory:
    """Faker with sequence-backed helpers for unique test values."""

    def __init__(
        self,
        locale: Optional[str] = None,
        seed: Optional[int] = None,
        sequences: Optional[SequenceRegistry] = None,
    ) -> None:
        settings = get_settings()
        self._faker = Faker(locale or settings.faker_locale)
        seed = seed if seed is not None else settings.faker_seed
        if seed is not None:
            self._faker.seed_instance(seed)
        self.sequences = sequences if sequences is not None else SequenceRegistry()

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._faker, name)

    # Sequences

    def sequence(self, name: str = DEFAULT_SEQUENCE) -> int:
        return self.sequences.next(name)

    def reset_sequence(self, name: str = DEFAULT_SEQUENCE, value: int = 0) -> None:
        self.sequences.reset(name, value)

    def reset_all_sequences(self) -> None:
        self.sequences.reset_all()

    # Unique values

    def identifier(self, suffix: Optional[str] = None) -> str:
        """Reverse-DNS identifier; a Faker domain word stands in for a missing suffix."""
        return self.sequences.unique_identifier(suffix or self._faker.domain_word())

    def unique_email(self, prefix: str = "user") -> str:
        return f"{prefix}{self.sequence('email')}@example.com"

    def username(self) -> str:
        return f"{self._faker.user_name()}{self.sequence('username')}"

    # Shaped values

    def timestamps(self) -> Dict[str, datetime]:
        """Return ``created_at``/``updated_at`` in UTC with ``created_at <= updated_at <= now``.

        Both values are naive, matching ``TIMESTAMP WITHOUT TIME ZONE`` columns.
        """
        created_at = self._faker.date_time_between(start_date="-1y", end_date="now", tzinfo=timezone.utc)
        updated_at = self._faker.date_time_between(start_date=created_at, end_date="now", tzinfo=timezone.utc)
        updated_at = max(created_at, updated_at)
        return {"created_at": created_at.replace(tzinfo=None), "updated_at": updated_at.replace(tzinfo=None)}

    def price(self, min_value: int = 1, max_value: int = 1000) -> Decimal:
        value = self._faker.pydecimal(right_digits=2, min_value=min_value, max_value=max_value)
        return value.quantize(_CENTS)

    def __repr__(self) -> str:
        return f"FakerFactory(locales={self._faker.locales!r}, sequences={self.sequences!r})"


faker = FakerFactory()
"""Shared instance used when a factory is built without its own faker."""
