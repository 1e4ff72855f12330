"""
Configuration Management.

Loads secrets from <config dir>/.env and settings from <config dir>/settings.yaml.
The config dir is $NSTACK_CONFIG_DIR, or ~/.nstack when unset.

Secrets (.env or environment):
    NSTACK_USER_ID, NSTACK_SECRET_KEY

Settings (YAML):
    settings.yaml - server address, install id, TLS and logging options

Both files are read once per process. The transport never looks settings
up itself; it receives a ClientConfig built by get_client_config().
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any
from uuid import UUID

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from nstack_cli.core.config_schema import LoggingSchema, SettingsFileSchema
from nstack_cli.core.exceptions import ConfigurationError

CONFIG_DIR_ENV = "NSTACK_CONFIG_DIR"
SETTINGS_FILE = "settings.yaml"
SECRETS_FILE = ".env"


def find_config_dir() -> Path:
    """Return the directory holding settings.yaml and .env."""
    configured = os.environ.get(CONFIG_DIR_ENV)
    if configured:
        return Path(configured).expanduser()
    return Path.home() / ".nstack"


def load_yaml_config(filename: str) -> dict[str, Any]:
    """
    Load a YAML file from the config dir.

    A missing file yields an empty dict so that defaults apply.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid YAML,
            or is not a mapping
    """
    config_path = find_config_dir() / filename

    if not config_path.exists():
        return {}

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {config_path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Could not read {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {config_path}")
    return data


class Settings(BaseSettings):
    """Secrets loaded from the environment or <config dir>/.env."""

    user_id: str | None = None
    secret_key: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="NSTACK_",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def _load_validated(schema_cls: type, filename: str) -> Any:
    """Load YAML and validate against schema. Returns typed model instance."""
    raw = load_yaml_config(filename)
    try:
        return schema_cls(**raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration in {filename}:\n{e}"
        ) from e


class AppConfig:
    """
    Settings loaded from settings.yaml.

    The file is validated against SettingsFileSchema at load time.
    Unknown keys or wrong types raise ConfigurationError immediately.
    """

    def __init__(self) -> None:
        self._settings_file = _load_validated(SettingsFileSchema, SETTINGS_FILE)

    @property
    def server_host(self) -> str:
        return self._settings_file.server.host

    @property
    def server_port(self) -> int:
        return self._settings_file.server.port

    @property
    def install_id(self) -> UUID | None:
        return self._settings_file.install_id

    @property
    def disable_certificate_validation(self) -> bool:
        return self._settings_file.tls.disable_certificate_validation

    @property
    def logging(self) -> LoggingSchema:
        """Logging settings."""
        return self._settings_file.logging

    @property
    def raw(self) -> SettingsFileSchema:
        """The validated settings file, for commands that rewrite it."""
        return self._settings_file


@lru_cache
def get_settings() -> Settings:
    """Get cached secrets instance. Resolves .env path from the config dir."""
    env_path = find_config_dir() / SECRETS_FILE
    return Settings(_env_file=str(env_path))


@lru_cache
def get_app_config() -> AppConfig:
    """Get cached application configuration."""
    return AppConfig()


@dataclass(frozen=True)
class AuthSettings:
    """Key pair used to sign every request."""

    user_id: str
    secret_key: str


@dataclass(frozen=True)
class Credentials:
    """Authentication material attached to outgoing calls."""

    auth: AuthSettings | None = None
    install_id: UUID | None = None


@dataclass(frozen=True)
class ClientConfig:
    """Everything the transport needs, resolved once at process start."""

    base_url: str
    credentials: Credentials
    verify_tls: bool = False


def server_base_url(host: str, port: int) -> str:
    """Combine host and port into the base URL all call names are appended to."""
    return f"https://{host}:{port}/"


def get_client_config() -> ClientConfig:
    """
    Build the ClientConfig from settings.yaml and the secrets file.

    Credentials are only present when both user id and secret key are set.
    """
    app_config = get_app_config()
    settings = get_settings()

    auth = None
    if settings.user_id and settings.secret_key:
        auth = AuthSettings(user_id=settings.user_id, secret_key=settings.secret_key)

    return ClientConfig(
        base_url=server_base_url(app_config.server_host, app_config.server_port),
        credentials=Credentials(auth=auth, install_id=app_config.install_id),
        verify_tls=not app_config.disable_certificate_validation,
    )
