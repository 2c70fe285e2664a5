from loguru import logger

from moment_client.core.constants import ApiPath
from moment_client.core.exceptions import ClientError, TransportError
from moment_client.core.results import Failure, Result, Success
from moment_client.schemas import (
    LogoutRequest,
    SendOtpRequest,
    SendOtpResponse,
    TokenPair,
    VerifyOtpRequest,
)
from moment_client.services.credentials import CredentialStore
from moment_client.services.http import ApiClient, TokenRefresher


class AuthService:
    """
    Authentication service handling OTP login, token refresh and logout.

    Receives the API client, refresher and credential store via constructor.
    Every operation returns a ``Success``/``Failure`` result; client errors are
    never raised to the caller.
    """

    def __init__(self, api: ApiClient, refresher: TokenRefresher, store: CredentialStore):
        self.api = api
        self.refresher = refresher
        self.store = store

    async def send_otp(self, email: str, phone: str) -> Result[SendOtpResponse]:
        """
        Send an OTP to the user's email for registration or login.

        Args:
            email: User's email address.
            phone: User's phone number.

        Returns:
            Result holding the OTP delivery details and expiry.
        """
        return await self.api.call(
            "POST",
            ApiPath.SEND_OTP,
            json=SendOtpRequest(email=email, phone=phone).model_dump(),
            response_model=SendOtpResponse,
            operation="Send OTP",
        )

    async def verify_otp(self, email: str, phone: str, otp: str) -> Result[TokenPair]:
        """
        Verify an OTP and store the issued token pair.

        Args:
            email: User's email address.
            phone: User's phone number.
            otp: One-time password received by the user.

        Returns:
            Result holding the new token pair, already persisted on success.
        """
        result = await self.api.call(
            "POST",
            ApiPath.VERIFY_OTP,
            json=VerifyOtpRequest(email=email, phone=phone, otp=otp).model_dump(),
            response_model=TokenPair,
            operation="OTP verification",
        )

        if isinstance(result, Success) and result.value is not None:
            await self.store.save(result.value)
            logger.info("OTP verified, credentials stored")

        return result

    async def refresh_token(self) -> Result[TokenPair]:
        """
        Refresh the token pair explicitly.

        Shares the single-flight lock with the automatic 401 recovery. Stored
        credentials are left untouched when the refresh fails.

        Returns:
            Result holding the new token pair.
        """
        try:
            pair = await self.refresher.refresh()
        except ClientError as e:
            logger.error(f"Token refresh failed: {e.message}")
            return Failure(e)

        return Success(pair)

    async def logout(self) -> Result[None]:
        """
        Revoke the refresh token on the server and clear local credentials.

        Local credentials are cleared in every outcome; a rejected logout call
        is only logged.

        Returns:
            Result: ``Success(None)``, or ``Failure`` when the logout request
            could not be sent.
        """
        refresh_token = await self.store.get_refresh_token()

        try:
            if refresh_token is not None:
                response = await self.api.send(
                    "POST",
                    ApiPath.LOGOUT,
                    json=LogoutRequest(refresh_token=refresh_token).model_dump(),
                )
                if not response.is_success:
                    # Continue with local logout even if server request fails
                    logger.warning(f"Logout request failed: {response.status_code}")
        except TransportError as e:
            logger.error(f"Error during logout: {e.message}")
            return Failure(e)
        finally:
            await self.store.clear()

        logger.info("Logged out, credentials cleared")
        return Success(None)

    async def is_authenticated(self) -> bool:
        return await self.store.is_authenticated()

    async def get_access_token(self) -> str | None:
        return await self.store.get_access_token()

