"""
Wire Schemas.

Pydantic models for the arguments and return values of NStack server
calls. All fields are msgpack-native so the codec can pack model dumps
directly.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MethodType = Literal["source", "sink", "function", "workflow"]


class _WireModel(BaseModel):
    """Immutable base for values exchanged with the server."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Arguments
# =============================================================================


class StartArgs(_WireModel):
    """Workflow to start, as DSL source."""

    dsl: str = Field(description="Workflow DSL source")
    debug: bool = Field(default=False, description="Start the process in debug mode")


class ListArgs(_WireModel):
    method_type: MethodType | None = None
    show_all: bool = False


class BuildTarball(_WireModel):
    """Gzipped tar archive of a container module directory."""

    data: bytes


class BuildWorkflowArgs(_WireModel):
    source: str
    module_name: str


# =============================================================================
# Return values
# =============================================================================


class ProcessStarted(_WireModel):
    process_id: int
    workflow: str | None = None


class LogsLine(_WireModel):
    line: str


class MethodInfo(_WireModel):
    name: str
    signature: str
    method_type: MethodType


class ProcessInfo(_WireModel):
    process_id: int
    workflow: str
    debug: bool = False


class ServerInfo(_WireModel):
    """Snapshot of what the server is running and hosting."""

    processes: list[ProcessInfo] = Field(default_factory=list)
    methods: list[MethodInfo] = Field(default_factory=list)
    modules: list[str] = Field(default_factory=list)


class ModuleBuild(_WireModel):
    module_name: str
    methods: list[MethodInfo] = Field(default_factory=list)


class WorkflowBuild(_WireModel):
    module_name: str
    workflows: list[str] = Field(default_factory=list)
