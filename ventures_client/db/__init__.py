"""Database Infrastructure: SQLAlchemy Base for the SQL-backed durable store.

Invariants:
    - All sessions are async (AsyncSession)
    - The only table is storage_entries (models/storage_entry.py)
"""
