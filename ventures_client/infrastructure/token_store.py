"""Token Store: single source of truth for session credentials.

Invariants:
    - The access token lives in memory only and is never written to durable storage
    - The refresh token is the only durable credential (StorageKey.REFRESH_TOKEN)
    - clear_tokens() removes every session key (refresh token, user id, signup email)
      and is idempotent
    - After ensure_loaded() the in-memory refresh token equals the durable one
    - is_authenticated() is True iff an access token is held in memory
    - A durable refresh token removed elsewhere (logout in another client) drops
      the in-memory access token as well

Design Decisions:
    - Subscribes to store change notifications for reactive reconciliation;
      ensure_loaded() stays as the pull-side sync for stores that cannot notify
    - Empty-string tokens are treated as absent
"""

import logging

from ventures_client.core.domain_types import SESSION_KEYS, StorageKey
from ventures_client.core.storage_protocols import KeyValueStore

logger = logging.getLogger(__name__)


class TokenStore:
    """Session credentials: access token in memory, refresh token in durable storage."""

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._access_token: str | None = None
        self._refresh_token: str | None = None
        self.initialized = False
        self._unsubscribe = store.subscribe(self._on_storage_change)

    @property
    def access_token(self) -> str | None:
        return self._access_token

    @property
    def refresh_token(self) -> str | None:
        return self._refresh_token

    @property
    def store(self) -> KeyValueStore:
        return self._store

    def is_authenticated(self) -> bool:
        return bool(self._access_token)

    async def set_tokens(self, access_token: str, refresh_token: str | None) -> None:
        """Hold the access token in memory and persist the refresh token.

        A None refresh token means the session has no refresh credential:
        any previously persisted one is removed.
        """
        self._access_token = access_token or None
        self._refresh_token = refresh_token or None
        self.initialized = True
        if self._refresh_token:
            await self._store.set(StorageKey.REFRESH_TOKEN.value, self._refresh_token)
        else:
            await self._store.remove(StorageKey.REFRESH_TOKEN.value)
        await self._store.remove(StorageKey.LEGACY_ACCESS_TOKEN.value)

    async def clear_tokens(self) -> None:
        self._access_token = None
        self._refresh_token = None
        self.initialized = False
        for key in SESSION_KEYS:
            await self._store.remove(key.value)

    def clear_access_token(self) -> None:
        """Drop a rejected access token; the refresh token is kept."""
        self._access_token = None

    async def ensure_loaded(self) -> None:
        """Reconcile the in-memory refresh token with durable storage."""
        stored = await self._store.get(StorageKey.REFRESH_TOKEN.value) or None
        if stored and stored != self._refresh_token:
            if not self.initialized:
                logger.debug("Loaded refresh token from durable storage")
            else:
                logger.debug("Refresh token rotated by another client")
            self._refresh_token = stored
        elif not stored and self._refresh_token:
            logger.debug("Refresh token removed by another client")
            self._refresh_token = None
            self._access_token = None
        self.initialized = True

    # ─── Session identifiers ─────────────────────────────────────

    async def remember_user(self, user_id: object, email: str | None = None) -> None:
        """Persist identifiers that live and die with the session."""
        if user_id is not None:
            await self._store.set(StorageKey.CURRENT_USER_ID.value, str(user_id))
        if email:
            await self._store.set(StorageKey.SIGNUP_EMAIL.value, email)

    async def current_user_id(self) -> str | None:
        return await self._store.get(StorageKey.CURRENT_USER_ID.value)

    async def signup_email(self) -> str | None:
        return await self._store.get(StorageKey.SIGNUP_EMAIL.value)

    # ─── Reactive reconciliation ─────────────────────────────────

    def _on_storage_change(self, key: str, value: str | None) -> None:
        if key != StorageKey.REFRESH_TOKEN.value:
            return
        if value:
            self._refresh_token = value
        elif self._refresh_token:
            self._refresh_token = None
            self._access_token = None

    def close(self) -> None:
        self._unsubscribe()
