import asyncio
import os
from pathlib import Path

import aiofiles
import aiofiles.os
from loguru import logger
from pydantic import ValidationError

from moment_client.schemas import TokenPair
from moment_client.services.credentials.base import CredentialStore

chmod = aiofiles.os.wrap(os.chmod)


class FileCredentialStore(CredentialStore):
    """
    JSON file store.

    Writes go to a temporary sibling file which then replaces the target, so a
    crash mid-write leaves either the old or the new pair on disk.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._pair: TokenPair | None = None
        self._loaded = False
        self._lock = asyncio.Lock()

    async def load(self) -> TokenPair | None:
        if self._loaded:
            return self._pair

        async with self._lock:
            if not self._loaded:
                self._pair = await self._read()
                self._loaded = True

        return self._pair

    async def save(self, pair: TokenPair) -> None:
        async with self._lock:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
            tmp_path = self.path.with_name(f"{self.path.name}.tmp")

            async with aiofiles.open(tmp_path, "w") as file:
                await file.write(pair.model_dump_json())

            await chmod(tmp_path, 0o600)
            await aiofiles.os.replace(tmp_path, self.path)

            self._pair = pair
            self._loaded = True

        logger.debug(f"Credentials saved to {self.path}")

    async def clear(self) -> None:
        async with self._lock:
            if await aiofiles.os.path.exists(self.path):
                await aiofiles.os.remove(self.path)

            self._pair = None
            self._loaded = True

        logger.debug(f"Credentials cleared from {self.path}")

    async def _read(self) -> TokenPair | None:
        if not await aiofiles.os.path.exists(self.path):
            return None

        async with aiofiles.open(self.path, "r") as file:
            content = await file.read()

        try:
            return TokenPair.model_validate_json(content)
        except ValidationError:
            logger.warning(f"Ignoring unreadable credentials file {self.path}")
            return None
