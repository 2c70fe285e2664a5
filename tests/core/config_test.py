"""Tests for the settings module."""

from pathlib import Path

from yarl import URL

from moment_client.core.config import (
    CredentialBackend,
    Environment,
    Settings,
    convert_app_name,
    to_realtime_scheme,
)


class TestConvertAppName:
    def test_convert_app_name(self):
        assert convert_app_name("moment-client") == "Moment Client"

    def test_convert_single_word(self):
        assert convert_app_name("moment") == "Moment"


class TestToRealtimeScheme:
    def test_https_maps_to_wss(self):
        url = URL("https://api.example.com/x")

        assert to_realtime_scheme(url) == URL("wss://api.example.com/x")

    def test_http_maps_to_ws(self):
        assert to_realtime_scheme(URL("http://localhost:8000/")) == URL("ws://localhost:8000/")

    def test_other_scheme_unchanged(self):
        assert to_realtime_scheme(URL("ws://host/")) == URL("ws://host/")


class TestSettings:
    def test_defaults(self):
        config = Settings(_env_file=None)

        assert config.current_environment == Environment.LOCAL
        assert config.credential_backend == CredentialBackend.FILE
        assert config.credentials_path == Path(".moment") / "credentials.json"
        assert config.heartbeat_interval_seconds == 30.0
        assert config.is_production is False

    def test_is_production(self):
        config = Settings(_env_file=None, current_environment=Environment.PRD)

        assert config.is_production is True

    def test_api_url_gets_trailing_slash(self):
        config = Settings(_env_file=None, api_base_url="https://api.example.com/moment")

        assert config.api_url == URL("https://api.example.com/moment/")

    def test_realtime_url_from_https_origin(self):
        config = Settings(_env_file=None, api_base_url="https://api.example.com/")

        assert config.realtime_url == URL("wss://api.example.com/api/v1/location/ws")

    def test_realtime_url_from_http_origin(self):
        config = Settings(_env_file=None, api_base_url="http://10.0.2.2:8000")

        assert config.realtime_url == URL("ws://10.0.2.2:8000/api/v1/location/ws")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("API_BASE_URL", "https://env.example.com/")
        monkeypatch.setenv("CREDENTIAL_BACKEND", "redis")
        monkeypatch.setenv("DEVICE_HASH", "abc123")

        config = Settings(_env_file=None)

        assert config.api_url == URL("https://env.example.com/")
        assert config.credential_backend == CredentialBackend.REDIS
        assert config.device_hash == "abc123"

    def test_redis_url_without_database(self):
        config = Settings(_env_file=None, redis_host="cache", redis_port=6380)

        assert config.redis_url.host == "cache"
        assert config.redis_url.port == 6380
        assert config.redis_url.path in ("", "/")

    def test_redis_url_with_credentials_and_database(self):
        config = Settings(
            _env_file=None,
            redis_host="cache",
            redis_user="user",
            redis_pass="secret",
            redis_base=2,
        )

        assert config.redis_url.user == "user"
        assert config.redis_url.password == "secret"
        assert config.redis_url.port == 6379
        assert config.redis_url.path == "/2"
