"""Client Session tests — composition root wiring and shared-store sessions."""

from ventures_client.client_session import ClientSession, create_client_session
from ventures_client.config import Settings
from ventures_client.infrastructure.storage import MemoryStore
from tests.fake_backend import FakeBackend, json_response

SETTINGS = dict(api_url="http://api.test", webhook_base_url="http://relay.test", _env_file=None)


def _backend() -> FakeBackend:
    return (
        FakeBackend()
        .on("POST", "/api/auth/token", json_response(200, {"access_token": "A1", "refresh_token": "R1"}))
        .on("GET", "/api/profile", json_response(200, {"id": 1, "email": "ada@example.com"}))
    )


async def test_session_wires_one_executor():
    backend = _backend()
    async with create_client_session(Settings(**SETTINGS), transport=backend.transport) as session:
        assert isinstance(session, ClientSession)
        assert session.users.api is session.api
        assert session.admin.api is session.api
        assert session.api.tokens is session.tokens

        result = await session.auth.login("ada@example.com", "pw")

        assert result["success"] is True
        assert (await session.users.get_current_user())["user"]["email"] == "ada@example.com"


async def test_sessions_sharing_a_store_share_the_refresh_token():
    """Two sessions over one store behave like two tabs of one browser."""
    store = MemoryStore()
    backend = _backend()
    settings = Settings(**SETTINGS)

    async with create_client_session(settings, store=store, transport=backend.transport) as first:
        async with create_client_session(settings, store=store, transport=backend.transport) as second:
            await first.auth.login("ada@example.com", "pw")
            await second.tokens.ensure_loaded()
            assert second.tokens.refresh_token == "R1"
            assert second.tokens.is_authenticated() is False

            await second.auth.logout()
            assert first.tokens.refresh_token is None
            assert first.tokens.is_authenticated() is False

    assert store.snapshot() == {}


async def test_keeper_started_and_stopped_with_session():
    async with create_client_session(Settings(**SETTINGS), store=MemoryStore()) as session:
        keeper = session.start_keeper()
        assert keeper.running is True
        assert session.start_keeper() is keeper

    assert keeper.running is False


async def test_settings_flow_into_services():
    settings = Settings(**SETTINGS, admin_page_size=25, agreement_cache_ttl_seconds=60)
    async with create_client_session(settings, store=MemoryStore()) as session:
        assert session.admin.page_size == 25
        assert session.agreements.ttl_seconds == 60
        assert session.api.build_url("/api/profile") == "http://api.test/api/profile"
