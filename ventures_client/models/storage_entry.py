"""StorageEntry ORM: one row per durable key (refresh token, session identifiers, caches).

Invariants:
    - key is the primary key: at most one value per key
    - value is opaque text (JSON-encoded by callers that store structures)
    - updated_at moves on every write
"""

from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from ventures_client.db.base import Base


class StorageEntry(Base):
    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
