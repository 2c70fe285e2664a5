import hashlib
import platform
import uuid
from dataclasses import dataclass
from functools import cache

from moment_client.core.config import Settings, settings


@dataclass(frozen=True, slots=True)
class DeviceIdentity:
    """Stable per-install fingerprint sent as a secondary auth factor."""

    hash: str


def hash_device_properties(*properties: str) -> str:
    """
    Derive a device hash from the given properties.

    Args:
        *properties: Stable device properties, joined with "-" before hashing.

    Returns:
        str: Lowercase hexadecimal SHA-256 digest.
    """
    device_info = "-".join(properties)
    return hashlib.sha256(device_info.encode()).hexdigest()


@cache
def _derived_device_hash(app_name: str) -> str:
    # uuid.getnode() falls back to a random value when no MAC address is readable
    return hash_device_properties(
        platform.system(),
        platform.machine(),
        platform.node(),
        f"{uuid.getnode():012x}",
        app_name,
    )


def get_device_identity(config: Settings = settings) -> DeviceIdentity:
    """
    Return the device identity for this process.

    The configured ``device_hash`` wins; otherwise the hash is derived once per
    process from host properties and the application name.
    """
    if config.device_hash:
        return DeviceIdentity(hash=config.device_hash)

    return DeviceIdentity(hash=_derived_device_hash(config.app_name))
