"""
Declarative test-data factories.

Modules:
- base: Factory interface, InsertPayload and builder/seed dispatch
- table: TableFactory for SQLAlchemy Core tables
- model: ModelFactory for SQLModel table models
"""

from .base import Builder, Factory, InsertPayload, Seed
from .model import ModelFactory
from .table import TableFactory

__all__ = [
    "Builder",
    "Factory",
    "InsertPayload",
    "ModelFactory",
    "Seed",
    "TableFactory",
]
