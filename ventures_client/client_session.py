"""Ventures Client: composition root wiring storage, tokens, executor and services.

Invariants:
    - One ClientSession owns one TokenStore, one ApiClient and one coalescer;
      there is no module-level client instance
    - Sessions sharing a KeyValueStore share the durable refresh token
      (like browser tabs sharing localStorage)
    - close() stops the keeper, closes HTTP clients, unsubscribes the token
      store and closes the store only when the session created it

Design Decisions:
    - Async context manager over a global singleton: tests and scripts build
      as many independent sessions as they need
    - Logging is configured only on request (configure_logging=True), so a
      host application keeps control of its own handlers
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Callable

import httpx

from ventures_client.config import Settings, get_settings
from ventures_client.core.storage_protocols import KeyValueStore
from ventures_client.infrastructure.api_client import ApiClient
from ventures_client.infrastructure.observability import setup_logging
from ventures_client.infrastructure.storage import create_store
from ventures_client.infrastructure.token_store import TokenStore
from ventures_client.services.admin_service import AdminService
from ventures_client.services.agreement_cache import AgreementCache
from ventures_client.services.auth_service import AuthService
from ventures_client.services.investment_service import InvestmentService
from ventures_client.services.payment_preferences import PaymentPreferences
from ventures_client.services.payment_service import PaymentService
from ventures_client.services.session_keeper import SessionKeeper
from ventures_client.services.user_service import UserService
from ventures_client.services.webhook_service import WebhookService

logger = logging.getLogger(__name__)


class ClientSession:
    """Every service of one authenticated client, built over a single executor."""

    def __init__(
        self,
        settings: Settings,
        store: KeyValueStore,
        owns_store: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.store = store
        self._owns_store = owns_store
        self.tokens = TokenStore(store)
        self.api = ApiClient(
            self.tokens,
            base_url=settings.api_url,
            same_origin_proxy=settings.same_origin_proxy,
            proxy_origin=settings.proxy_origin,
            timeout_seconds=settings.request_timeout_seconds,
            transport=transport,
        )
        self.auth = AuthService(self.api)
        self.users = UserService(self.api)
        self.payments = PaymentService(self.api)
        self.investments = InvestmentService(self.api)
        self.admin = AdminService(self.api, page_size=settings.admin_page_size)
        self.webhooks = WebhookService(
            base_url=settings.webhook_base_url or settings.proxy_origin,
            timeout_seconds=settings.request_timeout_seconds,
            transport=transport,
        )
        self.agreements = AgreementCache(store, ttl_seconds=settings.agreement_cache_ttl_seconds)
        self.preferences = PaymentPreferences(store)
        self.keeper: SessionKeeper | None = None

    def start_keeper(
        self,
        on_session_lost: Callable[[str], Any] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> SessionKeeper:
        """Start proactive refresh and idle logout for this session."""
        if self.keeper is None:
            kwargs = {"clock": clock} if clock is not None else {}
            self.keeper = SessionKeeper(
                self.api,
                on_session_lost=on_session_lost,
                refresh_interval=self.settings.token_refresh_interval_seconds,
                idle_timeout=self.settings.idle_timeout_seconds,
                idle_check_interval=self.settings.idle_check_interval_seconds,
                activity_throttle=self.settings.activity_throttle_seconds,
                **kwargs,
            )
        self.keeper.start()
        return self.keeper

    async def close(self) -> None:
        if self.keeper is not None:
            await self.keeper.stop()
        await self.webhooks.close()
        await self.api.close()
        self.tokens.close()
        if self._owns_store:
            await self.store.close()

    async def __aenter__(self) -> "ClientSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()


@asynccontextmanager
async def create_client_session(
    settings: Settings | None = None,
    store: KeyValueStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    configure_logging: bool = False,
) -> AsyncGenerator[ClientSession, None]:
    """Build a ClientSession, yield it, and close it on exit."""
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_level, settings.log_format)

    owns_store = store is None
    if store is None:
        store = await create_store(settings.storage_url)

    session = ClientSession(settings, store, owns_store=owns_store, transport=transport)
    logger.info("Client session ready", extra={"endpoint": session.api.backend_url})
    try:
        yield session
    finally:
        await session.close()
