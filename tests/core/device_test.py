"""Tests for the device identity."""

import hashlib

from moment_client.core.config import Settings
from moment_client.core.device import DeviceIdentity, get_device_identity, hash_device_properties


class TestHashDeviceProperties:
    def test_joins_properties_with_dash(self):
        expected = hashlib.sha256(b"Linux-x86_64-host").hexdigest()

        assert hash_device_properties("Linux", "x86_64", "host") == expected

    def test_is_lowercase_hex(self):
        digest = hash_device_properties("a", "b")

        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)


class TestGetDeviceIdentity:
    def test_configured_hash_wins(self):
        config = Settings(_env_file=None, device_hash="fixed-hash")

        assert get_device_identity(config) == DeviceIdentity("fixed-hash")

    def test_derived_hash_is_stable(self):
        config = Settings(_env_file=None, device_hash=None)

        first = get_device_identity(config)
        second = get_device_identity(config)

        assert first == second
        assert len(first.hash) == 64

    def test_derived_hash_depends_on_app_name(self):
        first = get_device_identity(Settings(_env_file=None, app_name="moment-a"))
        second = get_device_identity(Settings(_env_file=None, app_name="moment-b"))

        assert first.hash != second.hash
