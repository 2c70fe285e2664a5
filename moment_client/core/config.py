import logging
import tomllib
from enum import StrEnum
from importlib.metadata import PackageNotFoundError, metadata
from pathlib import Path
from typing import Any

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict
from yarl import URL

PROJECT_DIR = Path(__file__).parent.parent.parent
PROJECT_TOML_PATH = PROJECT_DIR / "pyproject.toml"


def _load_project_metadata() -> dict[str, Any]:
    if PROJECT_TOML_PATH.is_file():
        with open(PROJECT_TOML_PATH, "rb") as f:
            return tomllib.load(f)["project"]

    try:
        meta = metadata("moment-client")
    except PackageNotFoundError:
        return {"name": "moment-client", "version": "0.0.0", "description": ""}

    return {"name": meta["Name"], "version": meta["Version"], "description": meta["Summary"]}


PYPROJECT_CONTENT = _load_project_metadata()


class Environment(StrEnum):
    LOCAL = "local"
    DEV = "dev"
    STG = "stg"
    PRD = "prd"


class CredentialBackend(StrEnum):
    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


def convert_app_name(s: str) -> str:
    return " ".join(word.capitalize() for word in s.split("-"))


def to_realtime_scheme(url: URL) -> URL:
    """
    Map an HTTP origin to its WebSocket equivalent (https -> wss, http -> ws).
    """
    if url.scheme == "https":
        return url.with_scheme("wss")

    if url.scheme == "http":
        return url.with_scheme("ws")

    return url


class Settings(BaseSettings):
    """
    Client settings.

    These parameters can be configured
    with environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=False,
        extra="ignore",
    )

    # App variables
    app_name: str = PYPROJECT_CONTENT["name"]
    app_title: str = convert_app_name(PYPROJECT_CONTENT["name"])
    app_version: str = PYPROJECT_CONTENT["version"]
    app_description: str = PYPROJECT_CONTENT.get("description", "")

    # Current working environment
    current_environment: Environment = Environment.LOCAL
    log_level: int = logging.INFO
    debug: bool = False
    log_to_file: bool = False
    log_dir: Path = Path("logs")

    # Backend origin, e.g. https://api.moment.example/
    api_base_url: str = "http://localhost:8000/"
    http_timeout_seconds: float = 30.0

    # Realtime matching
    realtime_path: str = "api/v1/location/ws"
    heartbeat_interval_seconds: float = 30.0

    # Overrides the derived device fingerprint when set
    device_hash: str | None = None

    # Credential storage
    credential_backend: CredentialBackend = CredentialBackend.FILE
    credentials_path: Path = Path(".moment") / "credentials.json"

    # Variables for Redis (credential_backend=redis)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_user: str | None = None
    redis_pass: str | None = None
    redis_base: int | None = None
    redis_socket_connect_timeout: int = 5  # Socket connect timeout in seconds
    redis_socket_timeout: int = 5  # Socket timeout in seconds
    redis_credentials_key: str = "moment:credentials"

    @computed_field
    @property
    def is_production(self) -> bool:
        return self.current_environment == Environment.PRD

    @property
    def api_url(self) -> URL:
        """
        Base API origin, always ending with a slash so relative paths join under it.
        """
        url = URL(self.api_base_url)
        if not url.path.endswith("/"):
            url = url.with_path(url.path + "/")

        return url

    @property
    def realtime_url(self) -> URL:
        """
        Realtime endpoint, with the scheme mapped from the HTTP base URL.
        """
        return to_realtime_scheme(self.api_url.join(URL(self.realtime_path)))

    @property
    def redis_url(self) -> URL:
        """
        Assemble REDIS URL from settings.
        """
        path = ""

        if self.redis_base is not None:
            path = f"/{self.redis_base}"

        return URL.build(
            scheme="redis",
            host=self.redis_host,
            port=self.redis_port,
            user=self.redis_user,
            password=self.redis_pass,
            path=path,
        )


settings = Settings()  # type: ignore
