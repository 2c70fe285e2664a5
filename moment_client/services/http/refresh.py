import asyncio

import httpx
from loguru import logger
from pydantic import ValidationError

from moment_client.core.config import Settings, settings
from moment_client.core.constants import ApiPath, Header
from moment_client.core.device import DeviceIdentity
from moment_client.core.exceptions import (
    AuthExpiredError,
    ClientError,
    DecodeError,
    HttpStatusError,
    TransportError,
)
from moment_client.core.logger import mask_token
from moment_client.schemas import RefreshTokenRequest, TokenPair
from moment_client.services.credentials import CredentialStore


def create_bare_http_client(
    device: DeviceIdentity,
    config: Settings = settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an HTTP client that only carries the device hash header.

    Used for the refresh exchange so it never re-enters the 401 handling of
    the authenticated client and never sends a bearer token.
    """
    return httpx.AsyncClient(
        base_url=str(config.api_url),
        headers={Header.DEVICE_HASH: device.hash},
        timeout=config.http_timeout_seconds,
        transport=transport,
    )


class TokenRefresher:
    """
    Exchanges the stored refresh token for a new token pair.

    At most one exchange runs at a time per instance. Callers queued behind a
    running exchange reuse its outcome instead of spending the refresh token a
    second time, since the backend invalidates refresh tokens on use.
    """

    def __init__(self, store: CredentialStore, http: httpx.AsyncClient):
        self._store = store
        self._http = http
        self._lock = asyncio.Lock()

    @property
    def is_refreshing(self) -> bool:
        return self._lock.locked()

    async def refresh(self) -> TokenPair:
        """
        Refresh the stored pair unconditionally.

        Returns:
            TokenPair: The newly persisted pair

        Raises:
            AuthExpiredError: If no usable refresh token is stored
            TransportError: If the refresh request could not be sent
            HttpStatusError: If the backend rejected the refresh token
            DecodeError: If the response body is not a token pair
        """
        async with self._lock:
            return await self._exchange(await self._store.load())

    async def recover(self, stale_access_token: str | None) -> TokenPair | None:
        """
        Recover from a 401 received for a request sent with ``stale_access_token``.

        If another caller rotated the token while this one waited, the rotated
        pair is returned without a network call. If another caller's refresh
        failed and cleared the store, this one fails too. On a failed exchange
        the stored credentials are cleared before the lock is released.

        Args:
            stale_access_token: Access token stored when the failed request was sent

        Returns:
            TokenPair | None: Pair to retry with, or None when the session is over
        """
        async with self._lock:
            current = await self._store.load()

            if current is None:
                logger.warning("No stored credentials, token refresh skipped")
                return None

            if current.access_token != stale_access_token:
                logger.debug("Access token already rotated by a concurrent refresh")
                return current

            try:
                return await self._exchange(current)
            except ClientError as e:
                logger.warning(f"Token refresh failed, clearing credentials: {e.message}")
                await self._store.clear()
                return None

    async def _exchange(self, pair: TokenPair | None) -> TokenPair:
        if pair is None or not pair.refresh_token:
            raise AuthExpiredError()

        if pair.is_refresh_expired():
            raise AuthExpiredError("Refresh token has expired")

        logger.info(f"Refreshing access token with refresh token {mask_token(pair.refresh_token)}")

        try:
            response = await self._http.post(
                ApiPath.REFRESH_TOKEN,
                json=RefreshTokenRequest(refresh_token=pair.refresh_token).model_dump(),
            )
        except httpx.TransportError as e:
            raise TransportError("Token refresh request failed", e)

        if not response.is_success:
            raise HttpStatusError(
                response.status_code,
                message=f"Token refresh failed: {response.status_code}",
            )

        try:
            new_pair = TokenPair.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeError("Token refresh returned an undecodable body", e)

        await self._store.save(new_pair)
        logger.info(f"Access token refreshed: {mask_token(new_pair.access_token)}")

        return new_pair

    async def aclose(self) -> None:
        await self._http.aclose()
