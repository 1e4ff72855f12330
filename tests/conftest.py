"""
Root Pytest Fixtures.

Every test runs against its own empty config dir so that nothing is read
from (or written to) the real ~/.nstack.
"""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest

from nstack_cli.core.config import get_app_config, get_settings


@pytest.fixture(autouse=True)
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point NSTACK_CONFIG_DIR at a fresh directory and clear cached settings."""
    directory = tmp_path / "nstack-config"
    directory.mkdir()
    monkeypatch.setenv("NSTACK_CONFIG_DIR", str(directory))
    monkeypatch.delenv("NSTACK_USER_ID", raising=False)
    monkeypatch.delenv("NSTACK_SECRET_KEY", raising=False)

    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield directory
    get_settings.cache_clear()
    get_app_config.cache_clear()


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    """Undo handler and level changes made by setup_logging()."""
    root = logging.getLogger()
    original, level = root.handlers[:], root.level
    yield
    for handler in root.handlers[:]:
        if handler not in original:
            root.removeHandler(handler)
            handler.close()
    for handler in original:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
