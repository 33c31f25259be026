"""Declarative Base for the durable store tables.

Invariants:
    - Every table the SQL store creates is registered on Base.metadata
    - Constraint names are deterministic (naming convention), so two processes
      creating the schema against one file agree on it

Design Decisions:
    - Schema created with metadata.create_all on SqlStore.init(): a single
      key-value table needs no migration tooling
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)
