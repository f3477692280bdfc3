"""Unit tests for named sequences."""

import re
from concurrent.futures import ThreadPoolExecutor

from txn_testkit.sequences import DEFAULT_SEQUENCE, SequenceRegistry


class TestSequenceRegistryNext:
    """Test counter progression."""

    def test_first_value_is_one(self, sequences: SequenceRegistry):
        assert sequences.next("users") == 1

    def test_hundred_calls_have_no_gaps_or_repeats(self, sequences: SequenceRegistry):
        assert [sequences.next("users") for _ in range(100)] == list(range(1, 101))

    def test_names_are_independent(self, sequences: SequenceRegistry):
        sequences.next("users")
        sequences.next("users")

        assert sequences.next("posts") == 1
        assert sequences.next("users") == 3

    def test_default_name(self, sequences: SequenceRegistry):
        sequences.next()

        assert sequences.current(DEFAULT_SEQUENCE) == 1

    def test_concurrent_callers_never_share_a_value(self, sequences: SequenceRegistry):
        with ThreadPoolExecutor(max_workers=8) as pool:
            values = list(pool.map(lambda _: sequences.next("shared"), range(200)))

        assert sorted(values) == list(range(1, 201))


class TestSequenceRegistryReset:
    """Test current/reset/reset_all."""

    def test_current_without_use_is_zero(self, sequences: SequenceRegistry):
        assert sequences.current("unused") == 0

    def test_current_does_not_advance(self, sequences: SequenceRegistry):
        sequences.next("users")

        assert sequences.current("users") == 1
        assert sequences.current("users") == 1

    def test_reset_restarts_at_one(self, sequences: SequenceRegistry):
        sequences.next("users")
        sequences.next("users")
        sequences.reset("users")

        assert sequences.next("users") == 1

    def test_reset_to_value(self, sequences: SequenceRegistry):
        sequences.reset("users", 41)

        assert sequences.next("users") == 42

    def test_reset_leaves_other_names_alone(self, sequences: SequenceRegistry):
        sequences.next("users")
        sequences.next("posts")
        sequences.reset("users")

        assert sequences.current("posts") == 1

    def test_reset_all(self, sequences: SequenceRegistry):
        sequences.next("users")
        sequences.next("posts")
        sequences.reset_all()

        assert sequences.next("users") == 1
        assert sequences.next("posts") == 1


class TestUniqueIdentifier:
    """Test reverse-DNS identifiers."""

    def test_identifier_with_suffix(self, sequences: SequenceRegistry):
        assert sequences.unique_identifier("order") == "com.txntestkit.order1"
        assert sequences.unique_identifier("order") == "com.txntestkit.order2"

    def test_identifier_without_suffix(self, sequences: SequenceRegistry):
        identifier = sequences.unique_identifier()

        assert re.fullmatch(r"com\.txntestkit\.[0-9a-f]{8}1", identifier)

    def test_identifiers_are_unique(self, sequences: SequenceRegistry):
        identifiers = {sequences.unique_identifier("item") for _ in range(50)}

        assert len(identifiers) == 50
