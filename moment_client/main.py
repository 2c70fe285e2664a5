from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from loguru import logger

from moment_client.core.config import Settings, settings
from moment_client.core.device import get_device_identity
from moment_client.core.logger import configure_library_logging, setup_logger, shutdown_logger
from moment_client.services import AuthService, LocationService, UserService
from moment_client.services.credentials import CredentialStore, create_credential_store
from moment_client.services.http import ApiClient, TokenRefresher, create_bare_http_client
from moment_client.services.realtime import RealtimeSessionClient


class MomentClient:
    """
    Composition root owning every client component.

    Build one per application and close it with ``aclose()`` or by using it
    as an async context manager. Components share one credential store and
    one device identity.
    """

    def __init__(
        self,
        config: Settings = settings,
        *,
        credential_store: CredentialStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = config
        self.device = get_device_identity(config)
        self.credentials = credential_store or create_credential_store(config)

        self.refresher = TokenRefresher(
            store=self.credentials,
            http=create_bare_http_client(self.device, config, transport),
        )
        self.api = ApiClient.create(
            device=self.device,
            store=self.credentials,
            refresher=self.refresher,
            config=config,
            transport=transport,
        )
        self.realtime = RealtimeSessionClient.create(self.credentials, self.device, config)

        self.auth = AuthService(api=self.api, refresher=self.refresher, store=self.credentials)
        self.users = UserService(api=self.api)
        self.location = LocationService(api=self.api, realtime=self.realtime)

        self._closed = False

    async def __aenter__(self) -> "MomentClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release components in reverse order of construction."""
        if self._closed:
            return

        self._closed = True
        logger.info("Cleaning up resources...")

        await self.realtime.cleanup()
        await self.api.aclose()
        await self.refresher.aclose()
        await self.credentials.close()

        logger.success("Resources cleaned up.")


@asynccontextmanager
async def lifespan(
    config: Settings = settings,
    *,
    credential_store: CredentialStore | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[MomentClient]:
    """Configure logging, build the client and tear both down on exit"""

    setup_logger(config)
    configure_library_logging()

    logger.info("Initializing resources...")
    client = MomentClient(config, credential_store=credential_store, transport=transport)
    logger.success(f"{config.app_title} {config.app_version} ready for {config.api_url}")

    try:
        yield client  # Application runs here
    finally:
        await client.aclose()
        await shutdown_logger()
