"""
Result Formatters.

Turn successful call results into terminal text. Formatters are only
ever given Success values; errors are rendered by format_result.
"""

from typing import Iterable, Optional

from nstack_cli.client.schemas import (
    LogsLine,
    MethodInfo,
    ModuleBuild,
    ProcessInfo,
    ProcessStarted,
    ServerInfo,
    WorkflowBuild,
)

_METHOD_HEADINGS = {
    "source": "Sources",
    "sink": "Sinks",
    "function": "Functions",
    "workflow": "Workflows",
}


def pretty_lines_or(lines: Iterable[object], empty: str) -> str:
    """One item per line, or empty if there are none."""
    rendered = [str(line) for line in lines]
    return "\n".join(rendered) if rendered else empty


def join_log_lines(lines: list[LogsLine]) -> str:
    return "\n".join(line.line for line in lines)


def show_start_message(started: ProcessStarted) -> str:
    if started.workflow:
        return f"Successfully started {started.workflow} as process {started.process_id}"
    return f"Successfully started as process {started.process_id}"


def show_stop_message(process_id: int) -> str:
    return f"Successfully stopped process {process_id}"


def describe_process(process: ProcessInfo) -> str:
    suffix = " (debug)" if process.debug else ""
    return f"{process.process_id}: {process.workflow}{suffix}"


def describe_method(method: MethodInfo) -> str:
    return f"{method.name} :: {method.signature}"


def print_methods(methods: list[MethodInfo]) -> str:
    """Methods grouped by type, in source/sink/function/workflow order."""
    if not methods:
        return "No methods found"

    sections = []
    for method_type, heading in _METHOD_HEADINGS.items():
        matching = [m for m in methods if m.method_type == method_type]
        if matching:
            body = "\n".join(f"  {describe_method(m)}" for m in matching)
            sections.append(f"{heading}:\n{body}")
    return "\n\n".join(sections)


def print_info(info: ServerInfo) -> str:
    processes = pretty_lines_or(map(describe_process, info.processes), "No running processes")
    methods = print_methods(info.methods)
    modules = pretty_lines_or(info.modules, "No registered images")
    return (
        f"Running processes:\n{processes}\n\n"
        f"Available methods:\n{methods}\n\n"
        f"Modules:\n{modules}"
    )


def show_module_deleted(message: Optional[str]) -> str:
    return message if message is not None else "Module deleted"


def show_module_build(build: ModuleBuild) -> str:
    lines = [f"Successfully built module {build.module_name}"]
    if build.methods:
        lines.append("")
        lines.append(print_methods(build.methods))
    return "\n".join(lines)


def show_workflow_build(build: WorkflowBuild) -> str:
    lines = [f"Successfully built workflow module {build.module_name}"]
    lines.extend(f"  {name}" for name in build.workflows)
    return "\n".join(lines)
