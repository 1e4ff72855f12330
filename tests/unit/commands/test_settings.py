"""Unit tests for the set-server settings writer."""

import stat
from uuid import UUID

import pytest
import yaml

from nstack_cli.commands.settings import set_server
from nstack_cli.core.config import get_client_config
from nstack_cli.core.exceptions import ConfigurationError


class TestSetServer:
    def test_writes_settings_and_secrets(self, config_dir):
        written = set_server("nstack.example.com", 9443, "user-1", "s3cret")

        assert written == config_dir
        settings = yaml.safe_load((config_dir / "settings.yaml").read_text())
        assert settings["server"] == {"host": "nstack.example.com", "port": 9443}
        UUID(settings["install_id"])

        secrets = (config_dir / ".env").read_text()
        assert 'NSTACK_USER_ID="user-1"' in secrets
        assert 'NSTACK_SECRET_KEY="s3cret"' in secrets

    def test_secrets_file_is_private(self, config_dir):
        set_server("localhost", 8443, "user-1", "s3cret")
        mode = stat.S_IMODE((config_dir / ".env").stat().st_mode)
        assert mode == 0o600

    def test_client_config_reflects_new_settings(self):
        set_server("nstack.example.com", 9443, "user-1", "s3cret")

        config = get_client_config()
        assert config.base_url == "https://nstack.example.com:9443/"
        assert config.credentials.auth.user_id == "user-1"
        assert config.credentials.auth.secret_key == "s3cret"
        assert config.credentials.install_id is not None

    def test_keeps_existing_install_id(self, config_dir):
        install_id = "0b9c7f4e-2d6a-4c1b-8e3f-5a4d3c2b1a09"
        (config_dir / "settings.yaml").write_text(f"install_id: {install_id}\n")

        set_server("localhost", 8443, "user-1", "s3cret")

        settings = yaml.safe_load((config_dir / "settings.yaml").read_text())
        assert settings["install_id"] == install_id

    def test_keeps_other_sections(self, config_dir):
        (config_dir / "settings.yaml").write_text(
            "tls:\n  disable_certificate_validation: false\n"
        )

        set_server("localhost", 8443, "user-1", "s3cret")

        settings = yaml.safe_load((config_dir / "settings.yaml").read_text())
        assert settings["tls"] == {"disable_certificate_validation": False}

    def test_quotes_are_escaped(self, config_dir):
        set_server("localhost", 8443, "user-1", 'a"b\\c')

        assert get_client_config().credentials.auth.secret_key == 'a"b\\c'

    @pytest.mark.parametrize("port", [0, 70000])
    def test_invalid_port(self, config_dir, port):
        with pytest.raises(ConfigurationError):
            set_server("localhost", port, "user-1", "s3cret")

        assert not (config_dir / "settings.yaml").exists()

    def test_line_breaks_rejected(self, config_dir):
        with pytest.raises(ConfigurationError):
            set_server("localhost", 8443, "user-1", "line\nbreak")

        assert not (config_dir / ".env").exists()
