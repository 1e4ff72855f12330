"""Unit tests for the nstack command line."""

import pytest
from typer.testing import CliRunner

from nstack_cli import __version__
from nstack_cli.client import calls, codec
from nstack_cli.client.schemas import LogsLine, ProcessInfo, ProcessStarted
from nstack_cli.main import app

runner = CliRunner()


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setenv("NSTACK_USER_ID", "user-42")
    monkeypatch.setenv("NSTACK_SECRET_KEY", "test-secret-key")


@pytest.fixture
def served(monkeypatch, fake_server, credentials):
    """Route every CLI call to the fake server."""
    monkeypatch.setattr(
        "nstack_cli.main.create_http_client",
        lambda config, **kwargs: fake_server.client(),
    )
    return fake_server


class TestMainApp:
    """Tests for global options."""

    def test_version(self, fake_server):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"nstack-cli {__version__}" in result.stdout
        assert fake_server.requests == []

    def test_no_command_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "Usage" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("start", "server-logs", "list-modules", "set-server", "build"):
            assert command in result.stdout

    def test_unknown_command(self):
        result = runner.invoke(app, ["frobnicate"])
        assert result.exit_code == 2


class TestServerCommands:
    """Commands that call the server."""

    def test_missing_credentials(self):
        result = runner.invoke(app, ["ps"])
        assert result.exit_code == 1
        assert "There was an error communicating with the NStack server" in result.output
        assert "Missing or invalid credentials" in result.output

    def test_ps(self, served):
        served.respond_with_value(
            [ProcessInfo(process_id=4, workflow="M.main", debug=True)], list[ProcessInfo]
        )

        result = runner.invoke(app, ["ps"])

        assert result.exit_code == 0
        assert "4: M.main (debug)" in result.stdout
        (request,) = served.requests
        assert request.url.path == "/listProcesses"
        assert request.headers["X-NStack-User"] == "user-42"

    def test_server_error_exits_non_zero(self, served):
        served.respond(503)

        result = runner.invoke(app, ["gc"])

        assert result.exit_code == 1
        assert "An error was returned from the NStack Server" in result.output
        assert "503 Service Unavailable" in result.output

    def test_logs(self, served):
        served.respond_with_value([LogsLine(line="a"), LogsLine(line="b")], list[LogsLine])

        result = runner.invoke(app, ["logs", "7"])

        assert result.exit_code == 0
        assert "a\nb" in result.stdout
        assert codec.decode(served.requests[0].content, int) == 7

    def test_start_adds_import(self, served):
        served.respond_with_value(ProcessStarted(process_id=12), ProcessStarted)

        result = runner.invoke(app, ["start", "Acme.Flows:0.1.main", "--debug"])

        assert result.exit_code == 0
        assert "Successfully started as process 12" in result.stdout
        sent = codec.decode(served.requests[0].content, calls.START.argument_type)
        assert sent.dsl == "import Acme.Flows:0.1 as M\nM.main"
        assert sent.debug is True

    def test_notebook_reads_stdin(self, served):
        served.respond_with_value(ProcessStarted(process_id=3), ProcessStarted)

        result = runner.invoke(app, ["notebook"], input="import A as M\nM.main\n")

        assert result.exit_code == 0
        sent = codec.decode(served.requests[0].content, calls.START.argument_type)
        assert sent.dsl == "import A as M\nM.main\n"

    def test_out_of_range_process_id(self, served):
        result = runner.invoke(app, ["stop", "99999999999999999999999"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "There was an error communicating with the NStack server" in result.output
        assert "Cannot encode argument" in result.output
        assert served.requests == []

    def test_list_rejects_unknown_type(self, served):
        result = runner.invoke(app, ["list", "widgets"])
        assert result.exit_code == 2
        assert served.requests == []

    def test_list_function(self, served):
        served.respond_with_value([], list)

        result = runner.invoke(app, ["list", "function"])

        assert result.exit_code == 0
        sent = codec.decode(served.requests[0].content, calls.LIST.argument_type)
        assert sent.method_type == "function"

    def test_list_with_type(self, served):
        served.respond_with_value([], list)

        result = runner.invoke(app, ["list", "sink", "--all"])

        assert result.exit_code == 0
        assert "No methods found" in result.stdout
        sent = codec.decode(served.requests[0].content, calls.LIST.argument_type)
        assert sent.method_type == "sink"
        assert sent.show_all is True

    def test_build_without_build_file(self, served, tmp_path, monkeypatch):
        workdir = tmp_path / "work"
        workdir.mkdir()
        monkeypatch.chdir(workdir)

        result = runner.invoke(app, ["build"])

        assert result.exit_code == 1
        assert "Error: A valid nstack build file" in result.output
        assert served.requests == []

    def test_build_with_non_utf8_config(self, served, tmp_path, monkeypatch):
        workdir = tmp_path / "work"
        workdir.mkdir()
        (workdir / "nstack.yaml").write_bytes(b"name: \xff\xfe\n")
        monkeypatch.chdir(workdir)

        result = runner.invoke(app, ["build"])

        assert result.exit_code == 1
        assert isinstance(result.exception, SystemExit)
        assert "Error: Could not read nstack.yaml" in result.output
        assert served.requests == []


class TestSetServerCommand:
    def test_saves_settings(self, config_dir):
        result = runner.invoke(app, ["set-server", "nstack.example.com", "9443", "u", "k"])

        assert result.exit_code == 0
        assert "Server settings saved" in result.stdout
        assert (config_dir / "settings.yaml").is_file()
        assert (config_dir / ".env").is_file()

    def test_invalid_port(self, config_dir):
        result = runner.invoke(app, ["set-server", "localhost", "0", "u", "k"])

        assert result.exit_code == 1
        assert "Error: Invalid server address" in result.output
        assert not (config_dir / "settings.yaml").exists()
