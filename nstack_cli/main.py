"""
NStack CLI entry point.

A command-line interface into the NStack platform. Each command makes
one call (or, for project builds, one call per module) to the NStack
server and prints the result.

Usage:
    nstack --help                          # Show help
    nstack --version                       # Show version, no server call

    nstack set-server HOST PORT USER SECRET
    nstack start Acme.Orders:1.0.0.main    # Start a workflow
    nstack notebook < workflow.nml         # Start a workflow from stdin
    nstack stop 12                         # Stop process 12
    nstack logs 12                         # Logs of process 12
    nstack server-logs
    nstack info --all
    nstack list function
    nstack list-modules
    nstack delete-module Acme.Orders:1.0.0
    nstack ps
    nstack gc
    nstack build                           # Build the module in the current directory

Exit status is 0 when every call succeeded, 1 when any call or local
step failed, and 2 on usage errors.
"""

import asyncio
from pathlib import Path
from typing import NoReturn, Optional, get_args

import typer
from rich.console import Console

from nstack_cli import __version__
from nstack_cli.client.schemas import MethodType
from nstack_cli.client.session import create_http_client
from nstack_cli.client.transport import Transport
from nstack_cli.commands.dispatcher import (
    BuildCommand,
    Command,
    DeleteModuleCommand,
    Dispatcher,
    GarbageCollectCommand,
    InfoCommand,
    ListCommand,
    ListModulesCommand,
    ListProcessesCommand,
    LogsCommand,
    NotebookCommand,
    ServerLogsCommand,
    StartCommand,
    StopCommand,
)
from nstack_cli.commands.settings import set_server as save_server_settings
from nstack_cli.core.config import ClientConfig, get_client_config
from nstack_cli.core.exceptions import NStackError
from nstack_cli.core.logging import get_logger, log_with_source, setup_logging

logger = get_logger(__name__)

app = typer.Typer(
    name="nstack",
    help="nstack - a command-line interface into the NStack platform",
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

USAGE_EXIT_CODE = 2


# =============================================================================
# Runtime
# =============================================================================


async def run_command(command: Command, config: ClientConfig, **client_kwargs) -> bool:
    """Run one command with a fresh HTTP client; True if it fully succeeded."""
    async with create_http_client(config, **client_kwargs) as http:
        dispatcher = Dispatcher(Transport(http, config), console)
        return await dispatcher.run(command)


def _fail(message: str) -> NoReturn:
    err_console.print(message, markup=False, soft_wrap=True)
    raise typer.Exit(1)


def execute(command: Command) -> None:
    """Run command and exit non-zero if anything failed."""
    try:
        config = get_client_config()
        succeeded = asyncio.run(run_command(command, config))
    except NStackError as e:
        log_with_source(logger, "cli", "debug", "Command failed", code=e.code)
        _fail(f"Error: {e.message}")

    if not succeeded:
        raise typer.Exit(1)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def start(
    dsl: str = typer.Argument(..., help="Fully qualified workflow, e.g. Acme.Orders:1.0.0.main"),
    debug: bool = typer.Option(False, "--debug", help="Start the process in debug mode"),
) -> None:
    """Start a workflow as a new process."""
    execute(StartCommand(dsl=dsl, debug=debug))


@app.command()
def notebook(
    dsl: Optional[str] = typer.Argument(None, help="Workflow DSL; read from stdin if omitted"),
    debug: bool = typer.Option(False, "--debug", help="Start the process in debug mode"),
) -> None:
    """Start a workflow written as DSL source."""
    execute(NotebookCommand(dsl=dsl, debug=debug))


@app.command()
def stop(process_id: int = typer.Argument(..., help="Process to stop")) -> None:
    """Stop a running process."""
    execute(StopCommand(process_id=process_id))


@app.command()
def logs(process_id: int = typer.Argument(..., help="Process whose logs to show")) -> None:
    """Show the logs of a process."""
    execute(LogsCommand(process_id=process_id))


@app.command("server-logs")
def server_logs() -> None:
    """Show the NStack server logs."""
    execute(ServerLogsCommand())


@app.command()
def info(
    show_all: bool = typer.Option(False, "--all", "-a", help="Include hidden methods and modules"),
) -> None:
    """Show processes, methods and modules on the server."""
    execute(InfoCommand(show_all=show_all))


@app.command("list")
def list_methods(
    method_type: Optional[str] = typer.Argument(
        None, help="One of: source, sink, function, workflow",
    ),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include hidden methods"),
) -> None:
    """List methods available on the server."""
    if method_type is not None and method_type not in get_args(MethodType):
        raise typer.BadParameter(
            f"must be one of: {', '.join(get_args(MethodType))}",
            param_hint="METHOD_TYPE",
        )
    execute(ListCommand(method_type=method_type, show_all=show_all))


@app.command("list-modules")
def list_modules(
    show_all: bool = typer.Option(False, "--all", "-a", help="Include hidden modules"),
) -> None:
    """List modules registered on the server."""
    execute(ListModulesCommand(show_all=show_all))


@app.command("delete-module")
def delete_module(module: str = typer.Argument(..., help="Module to delete")) -> None:
    """Delete a module from the server."""
    execute(DeleteModuleCommand(module=module))


@app.command()
def ps() -> None:
    """List running processes."""
    execute(ListProcessesCommand())


@app.command()
def gc() -> None:
    """Remove unused images from the server."""
    execute(GarbageCollectCommand())


@app.command()
def build() -> None:
    """
    Build the module or project in the current directory.

    Looks for nstack-project.yaml, then nstack.yaml, then module.nml.
    """
    execute(BuildCommand(path=Path.cwd()))


@app.command("set-server")
def set_server(
    host: str = typer.Argument(..., help="NStack server host name"),
    port: int = typer.Argument(..., help="NStack server HTTPS port"),
    user_id: str = typer.Argument(..., help="User id from your welcome email"),
    secret_key: str = typer.Argument(..., help="Secret key from your welcome email"),
) -> None:
    """Save the server address and credentials."""
    try:
        config_dir = save_server_settings(host, port, user_id, secret_key)
    except NStackError as e:
        _fail(f"Error: {e.message}")
    console.print(f"Server settings saved to {config_dir}", markup=False)


# =============================================================================
# Global options
# =============================================================================


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"nstack-cli {__version__}", markup=False)
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        hidden=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    nstack - a command-line interface into the NStack platform.
    """
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(USAGE_EXIT_CODE)

    try:
        if debug:
            setup_logging(level="DEBUG")
            err_console.print("[dim]Debug mode enabled[/dim]")
        elif verbose:
            setup_logging(level="INFO")
        else:
            setup_logging()
    except NStackError as e:
        _fail(f"Error: {e.message}")


def run() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    run()
