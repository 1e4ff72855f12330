"""
Build File Resolution.

Decides what `nstack build` should do in a directory and prepares the
call arguments:

    nstack-project.yaml   project: build each listed module directory
    nstack.yaml           container module: upload the directory as a tarball
    module.nml            workflow module: upload the workflow source

Files are checked in that order; the first one present wins.
"""

import gzip
import io
import re
import tarfile
from pathlib import Path
from typing import Any, Literal

import yaml

from nstack_cli.client.schemas import BuildTarball, BuildWorkflowArgs
from nstack_cli.core.exceptions import BuildFileError
from nstack_cli.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

PROJECT_FILE = "nstack-project.yaml"
CONFIG_FILE = "nstack.yaml"
WORKFLOW_FILE = "module.nml"

BuildKind = Literal["project", "container", "workflow"]

_MODULE_DECLARATION = re.compile(r"^\s*module\s+([\w.:\-]+)", re.MULTILINE)
_EXCLUDED_DIRS = frozenset({"build", "__pycache__"})


def detect_build_kind(path: Path) -> BuildKind:
    """
    Find which kind of build file path contains.

    Raises:
        BuildFileError: If none of the build files is present
    """
    if (path / PROJECT_FILE).is_file():
        return "project"
    if (path / CONFIG_FILE).is_file():
        return "container"
    if (path / WORKFLOW_FILE).is_file():
        return "workflow"
    raise BuildFileError(
        f"A valid nstack build file ({PROJECT_FILE}, {CONFIG_FILE}, {WORKFLOW_FILE}) was not found"
    )


def _load_yaml_mapping(file_path: Path) -> dict[str, Any]:
    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise BuildFileError(f"Could not parse {file_path.name}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise BuildFileError(f"Could not read {file_path.name}: {e}") from e
    if not isinstance(data, dict):
        raise BuildFileError(f"Expected a mapping at the top of {file_path.name}")
    return data


def read_project_modules(path: Path) -> list[Path]:
    """Module directories listed under 'modules' in nstack-project.yaml."""
    data = _load_yaml_mapping(path / PROJECT_FILE)
    modules = data.get("modules")
    if not isinstance(modules, list) or not all(isinstance(m, str) for m in modules):
        raise BuildFileError(f"'modules' in {PROJECT_FILE} must be a list of directories")
    return [path / module for module in modules]


def read_module_name(path: Path) -> str:
    """The 'name' field of nstack.yaml."""
    data = _load_yaml_mapping(path / CONFIG_FILE)
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise BuildFileError(f"{CONFIG_FILE} does not declare a module 'name'")
    return name


def get_dsl_name(source: str) -> str:
    """
    The module name declared by a workflow source.

    Raises:
        BuildFileError: If the source has no 'module <Name>' declaration
    """
    match = _MODULE_DECLARATION.search(source)
    if match is None:
        raise BuildFileError(f"No 'module <Name>' declaration found in {WORKFLOW_FILE}")
    return match.group(1)


def _iter_module_files(path: Path) -> list[Path]:
    files = []
    for candidate in path.rglob("*"):
        relative = candidate.relative_to(path)
        if any(part.startswith(".") for part in relative.parts):
            continue
        if relative.parts[0] in _EXCLUDED_DIRS or "__pycache__" in relative.parts:
            continue
        if candidate.is_file():
            files.append(relative)
    return sorted(files, key=lambda p: p.as_posix())


def package_module(path: Path) -> bytes:
    """
    Pack a container module directory into a gzipped tarball.

    The archive is reproducible: entries are sorted and timestamps and
    ownership are zeroed, so an unchanged directory always packs to the
    same bytes.
    """
    raw = io.BytesIO()
    with tarfile.open(fileobj=raw, mode="w", format=tarfile.PAX_FORMAT) as tar:
        for relative in _iter_module_files(path):
            source = path / relative
            try:
                data = source.read_bytes()
                executable = source.stat().st_mode & 0o111
            except OSError as e:
                raise BuildFileError(f"Could not read {relative.as_posix()}: {e}") from e
            info = tarfile.TarInfo(name=relative.as_posix())
            info.size = len(data)
            info.mtime = 0
            info.mode = 0o755 if executable else 0o644
            info.uid = info.gid = 0
            info.uname = info.gname = ""
            tar.addfile(info, io.BytesIO(data))

    package = gzip.compress(raw.getvalue(), mtime=0)
    log_with_source(
        logger, "build", "debug", "Packaged module",
        path=str(path), size=len(package),
    )
    return package


def container_build_args(path: Path) -> tuple[str, BuildTarball]:
    """Module name and tarball argument for a container module build."""
    name = read_module_name(path)
    return name, BuildTarball(data=package_module(path))


def workflow_build_args(path: Path) -> BuildWorkflowArgs:
    """Workflow source and module name for a workflow module build."""
    try:
        source = (path / WORKFLOW_FILE).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BuildFileError(f"Could not read {WORKFLOW_FILE}: {e}") from e
    return BuildWorkflowArgs(source=source, module_name=get_dsl_name(source))
