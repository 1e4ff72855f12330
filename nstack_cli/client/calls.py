"""
Call Descriptors.

One CallDescriptor per NStack server operation. The name is the URL path
segment the server routes on and must stay stable across releases; the
argument and result types define the msgpack schema on each side.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from nstack_cli.client import codec
from nstack_cli.client.schemas import (
    BuildTarball,
    BuildWorkflowArgs,
    ListArgs,
    LogsLine,
    MethodInfo,
    ModuleBuild,
    ProcessInfo,
    ProcessStarted,
    ServerInfo,
    StartArgs,
    WorkflowBuild,
)

A = TypeVar("A")
B = TypeVar("B")


@dataclass(frozen=True)
class CallDescriptor(Generic[A, B]):
    """A named remote operation with its argument and result types."""

    name: bytes
    argument_type: Any
    result_type: Any

    def encode_argument(self, argument: A) -> bytes:
        return codec.encode(argument, self.argument_type)

    def decode_result(self, data: bytes) -> codec.Left | codec.Right | codec.DecodeError:
        return codec.decode_server_return(data, self.result_type)


START: CallDescriptor[StartArgs, ProcessStarted] = CallDescriptor(b"start", StartArgs, ProcessStarted)
STOP: CallDescriptor[int, int] = CallDescriptor(b"stop", int, int)
LOGS: CallDescriptor[int, list[LogsLine]] = CallDescriptor(b"logs", int, list[LogsLine])
SERVER_LOGS: CallDescriptor[None, list[LogsLine]] = CallDescriptor(b"serverLogs", None, list[LogsLine])
INFO: CallDescriptor[bool, ServerInfo] = CallDescriptor(b"info", bool, ServerInfo)
LIST: CallDescriptor[ListArgs, list[MethodInfo]] = CallDescriptor(b"list", ListArgs, list[MethodInfo])
LIST_MODULES: CallDescriptor[bool, list[str]] = CallDescriptor(b"listModules", bool, list[str])
DELETE_MODULE: CallDescriptor[str, Optional[str]] = CallDescriptor(b"deleteModule", str, Optional[str])
LIST_PROCESSES: CallDescriptor[None, list[ProcessInfo]] = CallDescriptor(
    b"listProcesses", None, list[ProcessInfo]
)
GC: CallDescriptor[None, list[str]] = CallDescriptor(b"gc", None, list[str])
BUILD: CallDescriptor[BuildTarball, ModuleBuild] = CallDescriptor(b"build", BuildTarball, ModuleBuild)
BUILD_WORKFLOW: CallDescriptor[BuildWorkflowArgs, WorkflowBuild] = CallDescriptor(
    b"buildWorkflow", BuildWorkflowArgs, WorkflowBuild
)

ALL_CALLS = (
    START,
    STOP,
    LOGS,
    SERVER_LOGS,
    INFO,
    LIST,
    LIST_MODULES,
    DELETE_MODULE,
    LIST_PROCESSES,
    GC,
    BUILD,
    BUILD_WORKFLOW,
)
