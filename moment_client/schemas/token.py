import time

from pydantic import ConfigDict

from moment_client.schemas.base import BaseSchema, ResponseSchema


class TokenPair(ResponseSchema):
    """Access/refresh token pair as returned by verify-OTP and refresh-token"""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    refresh_token: str
    refresh_token_expires_at: int  # epoch seconds

    def is_refresh_expired(self, now: float | None = None) -> bool:
        """
        Check if the refresh token is past its expiry.

        Args:
            now: Epoch seconds to compare against, defaults to the current time.

        Returns:
            bool: True when the pair can no longer be refreshed.
        """
        current = time.time() if now is None else now
        return current >= self.refresh_token_expires_at

    def is_valid(self, now: float | None = None) -> bool:
        return bool(self.access_token and self.refresh_token) and not self.is_refresh_expired(now)


class RefreshTokenRequest(BaseSchema):
    """Payload for the refresh-token endpoint"""

    refresh_token: str


class LogoutRequest(BaseSchema):
    """Payload for the logout endpoint"""

    refresh_token: str
