"""Boundary Protocols: contracts between the core and durable storage.

Invariants:
    - Core NEVER imports from the shell: dependency arrows point inward only
    - Every durable read/write goes through KeyValueStore
    - Listeners receive (key, new_value); new_value None means the key was removed

Design Decisions:
    - Protocol over ABC: structural subtyping, stores need no common base class
    - Async methods: implementations may do IO (SQL), the in-memory store simply never awaits
"""

from typing import Callable, Protocol

StorageListener = Callable[[str, str | None], None]


class KeyValueStore(Protocol):
    """Durable string key-value storage shared by every client of one session."""
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str) -> None: ...
    async def remove(self, key: str) -> None: ...
    def subscribe(self, listener: StorageListener) -> Callable[[], None]: ...
    async def close(self) -> None: ...
