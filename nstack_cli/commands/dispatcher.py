"""
Command Dispatcher.

Every user command is a frozen dataclass. plan() turns a command into the
call to make, its argument, and the formatter for a successful result;
Dispatcher sends the call and prints the rendered outcome.

Build is the only command that may issue several calls (one per module
of a project) and needs local work (reading build files, packaging)
before calling; it is handled by Dispatcher directly.
"""

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Union

from rich.console import Console

from nstack_cli.client import calls
from nstack_cli.client.calls import CallDescriptor
from nstack_cli.client.result import Result, Success, format_result
from nstack_cli.client.schemas import ListArgs, MethodType, StartArgs
from nstack_cli.client.transport import Transport
from nstack_cli.commands import build, formatters
from nstack_cli.core.logging import get_logger, log_with_source

logger = get_logger(__name__)


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True)
class StartCommand:
    dsl: str
    debug: bool = False


@dataclass(frozen=True)
class NotebookCommand:
    """Start a workflow read from stdin when dsl is None."""

    dsl: Optional[str] = None
    debug: bool = False


@dataclass(frozen=True)
class StopCommand:
    process_id: int


@dataclass(frozen=True)
class LogsCommand:
    process_id: int


@dataclass(frozen=True)
class ServerLogsCommand:
    pass


@dataclass(frozen=True)
class InfoCommand:
    show_all: bool = False


@dataclass(frozen=True)
class ListCommand:
    method_type: Optional[MethodType] = None
    show_all: bool = False


@dataclass(frozen=True)
class ListModulesCommand:
    show_all: bool = False


@dataclass(frozen=True)
class DeleteModuleCommand:
    module: str


@dataclass(frozen=True)
class ListProcessesCommand:
    pass


@dataclass(frozen=True)
class GarbageCollectCommand:
    pass


@dataclass(frozen=True)
class BuildCommand:
    path: Path = field(default_factory=Path.cwd)


Command = Union[
    StartCommand,
    NotebookCommand,
    StopCommand,
    LogsCommand,
    ServerLogsCommand,
    InfoCommand,
    ListCommand,
    ListModulesCommand,
    DeleteModuleCommand,
    ListProcessesCommand,
    GarbageCollectCommand,
    BuildCommand,
]


@dataclass(frozen=True)
class CallPlan:
    descriptor: CallDescriptor
    argument: Any
    formatter: Callable[[Any], str]


# =============================================================================
# Planning
# =============================================================================


def add_import(dsl: str) -> str:
    """
    Qualify a fully qualified workflow name with an import.

    "Acme.Orders:1.0.0.main" becomes
    "import Acme.Orders:1.0.0 as M\\nM.main"
    """
    module, _, _ = dsl.rpartition(".")
    if not module:
        return dsl
    return f"import {module} as M\n" + dsl.replace(module, "M")


def plan(command: Command) -> CallPlan:
    """
    The call, argument and formatter for a single-call command.

    Raises:
        TypeError: For BuildCommand or anything that is not a Command
    """
    if isinstance(command, StartCommand):
        return CallPlan(
            calls.START,
            StartArgs(dsl=add_import(command.dsl), debug=command.debug),
            formatters.show_start_message,
        )
    if isinstance(command, NotebookCommand):
        dsl = command.dsl if command.dsl is not None else sys.stdin.read()
        return CallPlan(
            calls.START,
            StartArgs(dsl=dsl, debug=command.debug),
            formatters.show_start_message,
        )
    if isinstance(command, StopCommand):
        return CallPlan(calls.STOP, command.process_id, formatters.show_stop_message)
    if isinstance(command, LogsCommand):
        return CallPlan(calls.LOGS, command.process_id, formatters.join_log_lines)
    if isinstance(command, ServerLogsCommand):
        return CallPlan(calls.SERVER_LOGS, None, formatters.join_log_lines)
    if isinstance(command, InfoCommand):
        return CallPlan(calls.INFO, command.show_all, formatters.print_info)
    if isinstance(command, ListCommand):
        return CallPlan(
            calls.LIST,
            ListArgs(method_type=command.method_type, show_all=command.show_all),
            formatters.print_methods,
        )
    if isinstance(command, ListModulesCommand):
        return CallPlan(
            calls.LIST_MODULES,
            command.show_all,
            lambda modules: formatters.pretty_lines_or(modules, "No registered images"),
        )
    if isinstance(command, DeleteModuleCommand):
        return CallPlan(calls.DELETE_MODULE, command.module, formatters.show_module_deleted)
    if isinstance(command, ListProcessesCommand):
        return CallPlan(
            calls.LIST_PROCESSES,
            None,
            lambda processes: formatters.pretty_lines_or(
                map(formatters.describe_process, processes), "No running processes"
            ),
        )
    if isinstance(command, GarbageCollectCommand):
        return CallPlan(
            calls.GC,
            None,
            lambda removed: formatters.pretty_lines_or(removed, "Nothing removed"),
        )
    raise TypeError(f"No call plan for {type(command).__name__}")


# =============================================================================
# Dispatcher
# =============================================================================


class Dispatcher:
    """
    Runs commands against a Transport and prints their results.

    Args:
        transport: Transport used for every call
        console: Where output is printed (stdout by default)
    """

    def __init__(self, transport: Transport, console: Console | None = None) -> None:
        self.transport = transport
        self.console = console or Console(highlight=False)

    def _print(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    async def call_server(self, call_plan: CallPlan) -> Result:
        """Make one call, print its rendered result and return it."""
        result = await self.transport.call(call_plan.descriptor, call_plan.argument)
        self._print(format_result(result, call_plan.formatter))
        return result

    async def run(self, command: Command) -> bool:
        """
        Run a command.

        Returns:
            True if every call the command made succeeded

        Raises:
            BuildFileError: If a build directory has no usable build file
        """
        log_with_source(logger, "cli", "debug", "Running command", command=type(command).__name__)

        if isinstance(command, BuildCommand):
            return await self._build(command.path)

        result = await self.call_server(plan(command))
        return isinstance(result, Success)

    async def _build(self, path: Path) -> bool:
        kind = build.detect_build_kind(path)

        if kind == "project":
            self._print("Building NStack Project. Please wait. This may take some time.")
            succeeded = True
            for module_path in build.read_project_modules(path):
                succeeded = await self._build(module_path) and succeeded
            return succeeded

        if kind == "container":
            name, tarball = build.container_build_args(path)
            self._print(
                f"Building NStack Container module {name}. Please wait. This may take some time."
            )
            result = await self.call_server(
                CallPlan(calls.BUILD, tarball, formatters.show_module_build)
            )
            return isinstance(result, Success)

        workflow = build.workflow_build_args(path)
        self._print(
            f"Building NStack Workflow module {workflow.module_name}. "
            "Please wait. This may take some time."
        )
        result = await self.call_server(
            CallPlan(calls.BUILD_WORKFLOW, workflow, formatters.show_workflow_build)
        )
        return isinstance(result, Success)
