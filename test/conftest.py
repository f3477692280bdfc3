from __future__ import annotations

import pytest

from test.settings import test_settings
from txn_testkit.faker import FakerFactory
from txn_testkit.sequences import SequenceRegistry


@pytest.fixture(scope="session")
def test_config():
    """Fixture providing test configuration from Pydantic settings model.

    Returns:
        TestSettings: Test configuration with all environment variables loaded
    """
    return test_settings


@pytest.fixture
def sequences() -> SequenceRegistry:
    """Fresh sequence registry for a single test."""
    return SequenceRegistry()


@pytest.fixture
def seeded_faker(sequences: SequenceRegistry) -> FakerFactory:
    """Faker with the configured seed and its own sequences."""
    return FakerFactory(seed=test_settings.data.faker_seed, sequences=sequences)
