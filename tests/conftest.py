"""Root conftest — shared test configuration and client fixtures."""

import os

import pytest

# Tests never reach a real backend
os.environ.setdefault("API_URL", "http://api.test")
os.environ.setdefault("STORAGE_URL", "memory://")
os.environ.setdefault("WEBHOOK_BASE_URL", "http://relay.test")

from ventures_client.infrastructure.api_client import ApiClient  # noqa: E402
from ventures_client.infrastructure.storage import MemoryStore  # noqa: E402
from ventures_client.infrastructure.token_store import TokenStore  # noqa: E402
from tests.fake_backend import FakeBackend  # noqa: E402

API_BASE = "http://api.test"


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def token_store(memory_store):
    tokens = TokenStore(memory_store)
    yield tokens
    tokens.close()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
async def api_client(token_store, backend):
    """Executor wired to the fake backend through httpx.MockTransport."""
    client = ApiClient(token_store, base_url=API_BASE, transport=backend.transport)
    yield client
    await client.close()


@pytest.fixture
async def signed_in(token_store):
    """Session holding access token "A1" and refresh token "R1"."""
    await token_store.set_tokens("A1", "R1")
    return token_store
