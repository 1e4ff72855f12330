"""
Logging.

structlog on top of the stdlib logging module, configured from the
logging section of settings.yaml. Log output never goes to stdout,
which is reserved for command results: the console handler writes to
stderr and the optional file handler writes JSON lines.

Every record carries timestamp, level, logger, event, func_name and
lineno, plus the source passed to log_with_source (cli, transport,
build or config).

Usage:
    setup_logging()                 # once, from the CLI callback
    logger = get_logger(__name__)
    log_with_source(logger, "transport", "debug", "API request", call="start")
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog
from structlog.typing import Processor

from nstack_cli.core.config import find_config_dir, get_app_config
from nstack_cli.core.config_schema import FileHandlerSchema, LoggingSchema

VALID_SOURCES = frozenset({
    "cli",
    "transport",
    "build",
    "config",
})
"""
Recognized log source values, for documentation and validation.
Source is always set explicitly by the caller. Never guessed from logger names.
"""


def _get_logging_config() -> LoggingSchema:
    """Get the logging section of the cached settings."""
    return get_app_config().logging


def _resolve_log_path(configured_path: str) -> Path:
    """
    Resolve the log file path.

    Relative paths are taken relative to the config dir.
    """
    path = Path(configured_path).expanduser()
    if path.is_absolute():
        return path
    return find_config_dir() / path


def _shared_processors() -> list[Processor]:
    """Processors run for structlog events and foreign stdlib records alike."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
        ),
    ]


def _stderr_handler(format_type: str, pre_chain: list[Processor]) -> logging.Handler:
    if format_type == "console":
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )
    return handler


def _jsonl_handler(config: FileHandlerSchema, pre_chain: list[Processor]) -> logging.Handler:
    log_path = _resolve_log_path(config.path)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(log_path),
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(), foreign_pre_chain=pre_chain
        )
    )
    return handler


def setup_logging(level: str | None = None, format_type: str | None = None) -> None:
    """
    Configure structured logging for the CLI.

    Handlers and defaults come from the logging section of settings.yaml;
    level and format_type override it (the -v and -d flags pass level).
    Calling this again replaces the handlers installed by the last call.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Stderr output format ('json' or 'console')
    """
    config = _get_logging_config()
    log_level = getattr(logging, (level or config.level).upper())
    shared_processors = _shared_processors()

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if config.handlers.console.enabled:
        root_logger.addHandler(
            _stderr_handler(format_type or config.format, shared_processors)
        )
    if config.handlers.file.enabled:
        root_logger.addHandler(_jsonl_handler(config.handlers.file, shared_processors))

    # httpx logs every request at INFO; keep it out of -v output.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(log_level, logging.WARNING))


def get_logger(name: str) -> Any:
    """
    Get a logger instance for the given name.

    Args:
        name: Logger name, typically __name__

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_with_source(logger: Any, source: str, level: str, message: str, **kwargs: Any) -> None:
    """
    Log a message with an explicit source.

    Args:
        logger: The logger instance
        source: Log source (cli, transport, build, config)
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        **kwargs: Additional context fields

    Raises:
        AttributeError: If level is not a valid log level

    Example:
        log_with_source(logger, "transport", "warning", "API request failed", call="gc")
    """
    log_method = getattr(logger, level.lower())
    log_method(message, source=source, **kwargs)
