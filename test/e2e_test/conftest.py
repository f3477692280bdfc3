"""Test configuration for end-to-end tests.

Removes the shared SQLite file once the session is over.
"""

from __future__ import annotations

import pytest

from test.e2e_test.databases import SQLITE_PATH


@pytest.fixture(scope="session", autouse=True)
def _sqlite_file():
    SQLITE_PATH.unlink(missing_ok=True)
    yield SQLITE_PATH
    SQLITE_PATH.unlink(missing_ok=True)
