from unittest.mock import AsyncMock, patch

import httpx
import pytest

from moment_client.core.config import Settings
from moment_client.core.constants import ApiPath
from moment_client.core.results import Success
from moment_client.main import MomentClient, lifespan
from moment_client.services.credentials import MemoryCredentialStore
from tests.utils import FakeBackend, generate_otp_credentials, make_token_pair, user_payload


class TestMomentClient:
    @pytest.mark.anyio
    async def test_components_share_store_and_device(self, test_settings: Settings):
        async with MomentClient(test_settings) as client:
            assert isinstance(client.credentials, MemoryCredentialStore)
            assert client.auth.store is client.credentials
            assert client.realtime.store is client.credentials
            assert client.location.realtime is client.realtime
            assert client.users.api is client.api
            assert client.device.hash == "test-device-hash"
            assert str(client.realtime.realtime_url) == "ws://test/api/v1/location/ws"

    @pytest.mark.anyio
    async def test_login_then_fetch_user(self, test_settings: Settings):
        backend = FakeBackend(accepted_token="A1")
        backend.route(
            "POST",
            ApiPath.VERIFY_OTP,
            lambda request: httpx.Response(200, json=make_token_pair("A1", "R1").model_dump()),
        )
        backend.protected("GET", ApiPath.CURRENT_USER, json_body=user_payload(5))
        credentials = generate_otp_credentials()

        async with MomentClient(
            test_settings, credential_store=MemoryCredentialStore(), transport=backend.transport
        ) as client:
            assert await client.auth.is_authenticated() is False

            login = await client.auth.verify_otp(
                credentials["email"], credentials["phone"], credentials["otp"]
            )
            user = await client.users.get_current_user()

        assert isinstance(login, Success)
        assert isinstance(user, Success)
        assert user.value.id == 5
        assert backend.authorizations == [None, "Bearer A1"]

    @pytest.mark.anyio
    async def test_aclose_is_idempotent(self, test_settings: Settings):
        store = MemoryCredentialStore()
        store.close = AsyncMock()
        client = MomentClient(test_settings, credential_store=store)

        await client.aclose()
        await client.aclose()

        store.close.assert_awaited_once()
        assert client.realtime.connection_events.closed is True


class TestLifespan:
    @pytest.mark.anyio
    async def test_lifespan_configures_logging_and_closes(self, test_settings: Settings):
        with (
            patch("moment_client.main.setup_logger") as mock_setup,
            patch("moment_client.main.configure_library_logging") as mock_library,
            patch("moment_client.main.shutdown_logger", new_callable=AsyncMock) as mock_shutdown,
        ):
            async with lifespan(test_settings) as client:
                assert isinstance(client, MomentClient)
                mock_setup.assert_called_once_with(test_settings)
                mock_library.assert_called_once()
                mock_shutdown.assert_not_awaited()

            mock_shutdown.assert_awaited_once()

        assert client._closed is True
