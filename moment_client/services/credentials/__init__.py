from moment_client.core.config import CredentialBackend, Settings, settings

from .base import CredentialStore
from .file_store import FileCredentialStore
from .memory_store import MemoryCredentialStore
from .redis_store import RedisCredentialStore, create_redis_client


def create_credential_store(config: Settings = settings) -> CredentialStore:
    """
    Build the credential store selected by ``credential_backend``.
    """
    match config.credential_backend:
        case CredentialBackend.MEMORY:
            return MemoryCredentialStore()
        case CredentialBackend.FILE:
            return FileCredentialStore(config.credentials_path)
        case CredentialBackend.REDIS:
            return RedisCredentialStore(
                redis_client=create_redis_client(config),
                key=config.redis_credentials_key,
            )


__all__ = [
    "CredentialStore",
    "MemoryCredentialStore",
    "FileCredentialStore",
    "RedisCredentialStore",
    "create_redis_client",
    "create_credential_store",
]
