"""
Settings Commands.

`nstack set-server` persists the server address and credentials. This
is the only place settings are written; every other command only reads
them through get_client_config().
"""

import os
from pathlib import Path
from uuid import uuid4

import yaml
from pydantic import ValidationError

from nstack_cli.core.config import (
    SECRETS_FILE,
    SETTINGS_FILE,
    find_config_dir,
    get_app_config,
    get_settings,
)
from nstack_cli.core.config_schema import ServerSchema
from nstack_cli.core.exceptions import ConfigurationError, SettingsWriteError
from nstack_cli.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


def _quote_env_value(value: str) -> str:
    if "\n" in value or "\r" in value:
        raise ConfigurationError("Credentials must not contain line breaks")
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def set_server(host: str, port: int, user_id: str, secret_key: str) -> Path:
    """
    Save the server address and credentials.

    Keeps any existing install id, generating one on first use.

    Returns:
        The config directory written to

    Raises:
        ConfigurationError: If the new values or the existing settings are invalid
        SettingsWriteError: If the files cannot be written
    """
    try:
        server = ServerSchema(host=host, port=port)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid server address:\n{e}") from e

    current = get_app_config().raw
    updated = current.model_copy(update={
        "server": server,
        "install_id": current.install_id or uuid4(),
    })

    env_lines = [
        f"NSTACK_USER_ID={_quote_env_value(user_id)}",
        f"NSTACK_SECRET_KEY={_quote_env_value(secret_key)}",
    ]

    config_dir = find_config_dir()
    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        with open(config_dir / SETTINGS_FILE, "w") as f:
            yaml.safe_dump(updated.model_dump(mode="json"), f, sort_keys=False)

        secrets_path = config_dir / SECRETS_FILE
        fd = os.open(secrets_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write("\n".join(env_lines) + "\n")
    except OSError as e:
        raise SettingsWriteError(f"Could not write settings to {config_dir}: {e}") from e

    get_app_config.cache_clear()
    get_settings.cache_clear()

    log_with_source(
        logger, "config", "info", "Saved server settings",
        config_dir=str(config_dir), host=host, port=port,
    )
    return config_dir
