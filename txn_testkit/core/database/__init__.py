"""
Database helpers for txn-testkit.

Structure:
- base.py: SQLModel base class for test models
- utils.py: engine, session factory and schema helpers
"""

from .base import Base
from .utils import (
    create_all,
    create_engine,
    create_engine_from_settings,
    create_sessionmaker,
)

__all__ = [
    "Base",
    "create_all",
    "create_engine",
    "create_engine_from_settings",
    "create_sessionmaker",
]
