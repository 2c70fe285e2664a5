from moment_client.schemas import TokenPair
from moment_client.services.credentials.base import CredentialStore


class MemoryCredentialStore(CredentialStore):
    """
    Process-local store. The pair is immutable, so swapping the reference is atomic.
    """

    def __init__(self, pair: TokenPair | None = None):
        self._pair = pair

    async def load(self) -> TokenPair | None:
        return self._pair

    async def save(self, pair: TokenPair) -> None:
        self._pair = pair

    async def clear(self) -> None:
        self._pair = None
