"""Durable Stores: key-value storage for the refresh token and session identifiers.

Invariants:
    - Listeners fire only when a key's value actually changes (set to a new value or removed)
    - Listeners are called after the write is durable
    - SqlStore maps every SQLAlchemy exception to StorageError (core/errors.py)
    - remove() of a missing key is a no-op

Design Decisions:
    - MemoryStore: one instance shared by several clients behaves like one
      browser's localStorage shared by its tabs
    - SqlStore: one database file shared by several processes; cross-process
      changes are picked up by TokenStore.ensure_loaded() rather than listeners
    - SqlStore session handling follows the same rollback-and-map pattern as
      the async database session manager it is modeled on
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from sqlalchemy import select, delete
from sqlalchemy.exc import (
    IntegrityError, OperationalError, DBAPIError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from ventures_client.core.errors import StorageError
from ventures_client.core.storage_protocols import KeyValueStore, StorageListener
from ventures_client.db.base import Base
from ventures_client.models.storage_entry import StorageEntry

logger = logging.getLogger(__name__)

MEMORY_URL = "memory://"


class _ListenerRegistry:
    """Subscription bookkeeping shared by both store implementations."""

    def __init__(self):
        self._listeners: list[StorageListener] = []

    def subscribe(self, listener: StorageListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: str, value: str | None) -> None:
        for listener in list(self._listeners):
            listener(key, value)


class MemoryStore(_ListenerRegistry):
    """Process-local store. Share one instance between clients to share a session."""

    def __init__(self, initial: dict[str, str] | None = None):
        super().__init__()
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        previous = self._data.get(key)
        self._data[key] = value
        if previous != value:
            self._notify(key, value)

    async def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._notify(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of every stored key (tests and diagnostics)."""
        return dict(self._data)

    async def close(self) -> None:
        return None


class SqlStore(_ListenerRegistry):
    """Async SQLAlchemy store over the storage_entries table."""

    def __init__(self, database_url: str):
        super().__init__()
        self.engine = create_async_engine(database_url, echo=False)
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    async def init(self) -> None:
        """Create the storage table if it does not exist."""
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            logger.error(f"Storage schema init failed: {e}")
            raise StorageError("Could not create storage table", "init")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide session with auto-rollback on exception."""
        session = self._session_factory()
        try:
            yield session
        except IntegrityError as e:
            await session.rollback()
            logger.error(f"Storage integrity error: {e}")
            raise StorageError("Integrity constraint violated", "commit")
        except OperationalError as e:
            await session.rollback()
            logger.error(f"Storage operational error: {e}")
            raise StorageError("Connection or operational error", "execute")
        except DBAPIError as e:
            await session.rollback()
            logger.error(f"Storage driver error: {e}")
            raise StorageError("Database driver error", "query")
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"SQLAlchemy error: {e}")
            raise StorageError("Storage operation failed", "unknown")
        finally:
            await session.close()

    async def get(self, key: str) -> str | None:
        async with self.session() as db:
            result = await db.execute(
                select(StorageEntry.value).where(StorageEntry.key == key),
            )
            return result.scalar_one_or_none()

    async def set(self, key: str, value: str) -> None:
        async with self.session() as db:
            entry = await db.get(StorageEntry, key)
            previous = entry.value if entry else None
            if entry is None:
                db.add(StorageEntry(key=key, value=value))
            else:
                entry.value = value
            await db.commit()
        if previous != value:
            self._notify(key, value)

    async def remove(self, key: str) -> None:
        async with self.session() as db:
            result = await db.execute(
                delete(StorageEntry).where(StorageEntry.key == key),
            )
            await db.commit()
            removed = (result.rowcount or 0) > 0
        if removed:
            self._notify(key, None)

    async def close(self) -> None:
        await self.engine.dispose()


async def create_store(storage_url: str) -> KeyValueStore:
    """Build the store named by settings.storage_url."""
    if not storage_url or storage_url == MEMORY_URL:
        return MemoryStore()
    store = SqlStore(storage_url)
    await store.init()
    logger.info("SQL storage ready", extra={"storage_key": StorageEntry.__tablename__})
    return store
