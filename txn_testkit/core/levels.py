"""Transaction isolation levels."""

from __future__ import annotations

from enum import Enum


class IsolationLevel(str, Enum):
    """SQL standard isolation levels.

    Values are the strings SQLAlchemy accepts for the ``isolation_level``
    execution option.
    """

    READ_UNCOMMITTED = "READ UNCOMMITTED"
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"
