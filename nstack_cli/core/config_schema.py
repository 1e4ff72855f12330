"""
Configuration Schemas.

Pydantic models defining the expected structure of settings.yaml.
Used by AppConfig to validate configuration at load time. If the file
has unknown keys or wrong types, a clear error is raised at startup
instead of a cryptic failure deep in a command.

Every field has a default: a fresh install with no settings.yaml is a
valid (if credential-less) configuration.

    SettingsFileSchema
        server   → ServerSchema
        tls      → TlsSchema
        logging  → LoggingSchema
"""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SERVER_HOST = "localhost"
DEFAULT_SERVER_PORT = 8443


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# server
# =============================================================================


class ServerSchema(_StrictBase):
    host: str = DEFAULT_SERVER_HOST
    port: int = Field(default=DEFAULT_SERVER_PORT, ge=1, le=65535)


# =============================================================================
# tls
# =============================================================================


class TlsSchema(_StrictBase):
    # Server certificates are self-signed until the CLI ships an NStack root
    # certificate. Turning this off requires a CA-signed server certificate.
    disable_certificate_validation: bool = True


# =============================================================================
# logging
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool = True


class FileHandlerSchema(_StrictBase):
    enabled: bool = False
    path: str = "logs/nstack.jsonl"
    max_bytes: int = 10485760
    backup_count: int = 3


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema = Field(default_factory=ConsoleHandlerSchema)
    file: FileHandlerSchema = Field(default_factory=FileHandlerSchema)


class LoggingSchema(_StrictBase):
    level: str = "WARNING"
    format: str = "console"
    handlers: HandlersSchema = Field(default_factory=HandlersSchema)


# =============================================================================
# settings.yaml
# =============================================================================


class SettingsFileSchema(_StrictBase):
    server: ServerSchema = Field(default_factory=ServerSchema)
    install_id: UUID | None = None
    tls: TlsSchema = Field(default_factory=TlsSchema)
    logging: LoggingSchema = Field(default_factory=LoggingSchema)
