from typing import AsyncGenerator, Generator

import httpx
from loguru import logger

from moment_client.core.constants import ApiPath, Header
from moment_client.core.device import DeviceIdentity
from moment_client.services.credentials import CredentialStore
from moment_client.services.http.refresh import TokenRefresher


class DeviceTokenAuth(httpx.Auth):
    """
    httpx auth flow adding the device hash and bearer headers.

    Every request carries ``x-device-hash``. Requests outside ``/auth/`` also
    carry ``Authorization: Bearer <access_token>`` when a token is stored.

    A 401 on anything but the refresh endpoint suspends the caller until the
    refresher resolves. On success the original request is re-sent once with
    the new token and that response is final; on failure the stored
    credentials are already cleared and the original 401 is returned.
    """

    def __init__(self, device: DeviceIdentity, store: CredentialStore, refresher: TokenRefresher):
        self.device = device
        self.store = store
        self.refresher = refresher

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("DeviceTokenAuth can only be used with httpx.AsyncClient")
        yield request  # pragma: no cover

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        stored_token = await self.decorate(request)
        response = yield request

        if response.status_code != 401 or ApiPath.is_refresh_path(request.url.path):
            return

        logger.info(f"Received 401 from {request.url.path}, attempting token refresh")
        pair = await self.refresher.recover(stored_token)

        if pair is None:
            logger.warning(f"Session expired, returning 401 for {request.url.path}")
            return

        self.apply_headers(request, pair.access_token)
        yield request

    async def decorate(self, request: httpx.Request) -> str | None:
        """
        Add the auth headers from the currently stored pair.

        Returns:
            str | None: The access token stored at decoration time
        """
        access_token = await self.store.get_access_token()
        self.apply_headers(request, access_token)
        return access_token

    def apply_headers(self, request: httpx.Request, access_token: str | None) -> None:
        request.headers[Header.DEVICE_HASH] = self.device.hash

        if access_token and not ApiPath.is_auth_path(request.url.path):
            request.headers[Header.AUTHORIZATION] = f"{Header.BEARER} {access_token}"
        else:
            request.headers.pop(Header.AUTHORIZATION, None)
