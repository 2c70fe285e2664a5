from abc import ABC, abstractmethod

from moment_client.schemas import TokenPair


class CredentialStore(ABC):
    """
    Abstract durable storage for the token pair.

    Implementations replace the pair as a whole so no reader ever observes a
    half-written pair (e.g. a new access token with the old expiry).
    """

    @abstractmethod
    async def load(self) -> TokenPair | None:
        """
        Read the stored token pair.

        Returns:
            TokenPair | None: The stored pair, or None when logged out
        """

    @abstractmethod
    async def save(self, pair: TokenPair) -> None:
        """Persist all three fields of the pair in a single write."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every stored credential."""

    async def get_access_token(self) -> str | None:
        pair = await self.load()
        return pair.access_token if pair else None

    async def get_refresh_token(self) -> str | None:
        pair = await self.load()
        return pair.refresh_token if pair else None

    async def is_authenticated(self) -> bool:
        """
        Check if a usable session is stored.

        Returns:
            bool: True when both tokens are present and the refresh token has not expired
        """
        pair = await self.load()
        return pair is not None and pair.is_valid()

    async def close(self) -> None:
        """Release resources held by the store"""
