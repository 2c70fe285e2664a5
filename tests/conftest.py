from typing import AsyncGenerator

import pytest
from aiohttp.test_utils import TestServer
from faker import Faker

from moment_client.core.config import CredentialBackend, Settings
from moment_client.core.device import DeviceIdentity
from moment_client.schemas import TokenPair
from moment_client.services.credentials import MemoryCredentialStore
from moment_client.services.http import ApiClient, TokenRefresher, create_bare_http_client
from tests.utils import FakeBackend, FakeRealtimeServer, make_token_pair

TEST_DEVICE_HASH = "test-device-hash"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def faker() -> Faker:
    """Create a Faker instance for generating test data."""
    return Faker()


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    """Settings pointing at the in-process fakes."""
    return Settings(
        api_base_url="http://test/",
        credential_backend=CredentialBackend.MEMORY,
        credentials_path=tmp_path / "credentials.json",
        heartbeat_interval_seconds=0.05,
        http_timeout_seconds=5.0,
        device_hash=TEST_DEVICE_HASH,
    )


@pytest.fixture
def device() -> DeviceIdentity:
    return DeviceIdentity(TEST_DEVICE_HASH)


@pytest.fixture
def token_pair() -> TokenPair:
    return make_token_pair("A1", "R1")


@pytest.fixture
def memory_store(token_pair: TokenPair) -> MemoryCredentialStore:
    """Credential store already holding the A1/R1 pair."""
    return MemoryCredentialStore(token_pair)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(accepted_token="A1")


@pytest.fixture
async def refresher(
    memory_store: MemoryCredentialStore,
    backend: FakeBackend,
    device: DeviceIdentity,
    test_settings: Settings,
) -> AsyncGenerator[TokenRefresher, None]:
    """Token refresher talking to the fake backend."""
    refresher = TokenRefresher(
        store=memory_store,
        http=create_bare_http_client(device, test_settings, backend.transport),
    )
    yield refresher
    await refresher.aclose()


@pytest.fixture
async def api_client(
    memory_store: MemoryCredentialStore,
    backend: FakeBackend,
    device: DeviceIdentity,
    refresher: TokenRefresher,
    test_settings: Settings,
) -> AsyncGenerator[ApiClient, None]:
    """Authenticated API client talking to the fake backend."""
    client = ApiClient.create(
        device=device,
        store=memory_store,
        refresher=refresher,
        config=test_settings,
        transport=backend.transport,
    )
    yield client
    await client.aclose()


@pytest.fixture
async def realtime_server() -> AsyncGenerator[tuple[FakeRealtimeServer, TestServer], None]:
    """Start the fake realtime endpoint on a free local port."""
    fake = FakeRealtimeServer()
    server = TestServer(fake.app)
    await server.start_server()
    yield fake, server
    await server.close()
