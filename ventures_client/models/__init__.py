"""ORM Models: SQLAlchemy declarative models for durable client state.

Invariants:
    - All models inherit from Base (db/base.py)

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all runs
"""

from ventures_client.models.storage_entry import StorageEntry  # noqa: F401
