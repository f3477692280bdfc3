"""pytest plugin registered through the ``pytest11`` entry point.

Resets the shared Faker's sequences when a test session starts, so generated
emails and identifiers do not depend on what ran before in the same process,
and exposes the shared Faker and its sequences as fixtures.
"""

from __future__ import annotations

import logging

import pytest

from txn_testkit.faker import FakerFactory
from txn_testkit.faker import faker as default_faker
from txn_testkit.sequences import SequenceRegistry

logger = logging.getLogger(__name__)


def pytest_sessionstart(session: pytest.Session) -> None:
    default_faker.reset_all_sequences()
    logger.debug("Reset shared faker sequences")


@pytest.fixture
def testkit_faker() -> FakerFactory:
    """The Faker instance factories use when none is given."""
    return default_faker


@pytest.fixture
def sequence_registry() -> SequenceRegistry:
    """Sequences of the shared Faker."""
    return default_faker.sequences
