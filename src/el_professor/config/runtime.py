"""
Runtime environment detection and the MCP server catalog.

ElProfessor launches the same five AWS Labs MCP servers everywhere, but the
command used to start them depends on where the CLI runs: inside a Docker
container the servers run as sibling containers, on Windows through
``uv tool run`` and on Linux/macOS through ``uvx``.
"""

import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Dict, List, Literal, Mapping, NamedTuple, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DOCKERENV_PATH = Path("/.dockerenv")
CGROUP_PATH = Path("/proc/1/cgroup")

MCP_LOG_ENV = {"FASTMCP_LOG_LEVEL": "ERROR"}


class RuntimeEnvironment(Enum):
    """Where the CLI is running."""
    DOCKER = "docker"
    WINDOWS = "windows"
    UNIX = "unix"


class MCPServerConfig(BaseModel):
    """Configuration for a single stdio MCP server."""
    name: str
    command: str
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    disabled: bool = False
    auto_approve: List[str] = Field(default_factory=list)
    type: Literal["stdio"] = "stdio"
    timeout: int = Field(default=60, description="Connection timeout in seconds", ge=0)

    @property
    def timeout_ms(self) -> int:
        return self.timeout * 1000


class _CatalogEntry(NamedTuple):
    name: str
    package: str
    extra_env: Dict[str, str]


MCP_CATALOG: List[_CatalogEntry] = [
    _CatalogEntry("aws-documentation", "awslabs.aws-documentation-mcp-server",
                  {"AWS_DOCUMENTATION_PARTITION": "aws"}),
    _CatalogEntry("terraform", "awslabs.terraform-mcp-server", {}),
    _CatalogEntry("cdk", "awslabs.cdk-mcp-server", {}),
    _CatalogEntry("aws-diagram", "awslabs.aws-diagram-mcp-server", {}),
    _CatalogEntry("code-doc-gen", "awslabs.code-doc-gen-mcp-server", {}),
]


def is_running_in_docker(
    dockerenv_path: Path = DOCKERENV_PATH,
    cgroup_path: Path = CGROUP_PATH,
    environ: Optional[Mapping[str, str]] = None
) -> bool:
    """
    Determine whether the process runs inside a Docker container.

    Checks, in order: the ``/.dockerenv`` marker, the cgroup of PID 1, and the
    ``DOCKER_CONTAINER`` / ``CONTAINER`` environment variables.
    """
    environ = os.environ if environ is None else environ

    if dockerenv_path.exists():
        return True

    try:
        cgroup = cgroup_path.read_text(encoding="utf-8")
    except OSError:
        # Non-Linux hosts have no cgroup file
        cgroup = ""
    if "docker" in cgroup or "containerd" in cgroup:
        return True

    return environ.get("DOCKER_CONTAINER") == "true" or environ.get("CONTAINER") == "docker"


def detect_runtime_environment(platform: Optional[str] = None, **docker_checks) -> RuntimeEnvironment:
    """Detect the runtime environment: Docker first, then Windows, else Unix-like."""
    if is_running_in_docker(**docker_checks):
        return RuntimeEnvironment.DOCKER

    if (platform or sys.platform) == "win32":
        return RuntimeEnvironment.WINDOWS

    return RuntimeEnvironment.UNIX


def _docker_server(entry: _CatalogEntry) -> MCPServerConfig:
    args = ["run", "--rm", "--interactive"]
    for key, value in {**MCP_LOG_ENV, **entry.extra_env}.items():
        args.extend(["--env", f"{key}={value}"])
    args.append(f"mcp/{entry.name}:latest")
    return MCPServerConfig(name=entry.name, command="docker", args=args)


def _windows_server(entry: _CatalogEntry) -> MCPServerConfig:
    return MCPServerConfig(
        name=entry.name,
        command="uv",
        args=["tool", "run", "--from", f"{entry.package}@latest", f"{entry.package}.exe"],
        env={**MCP_LOG_ENV, **entry.extra_env},
    )


def _unix_server(entry: _CatalogEntry) -> MCPServerConfig:
    return MCPServerConfig(
        name=entry.name,
        command="uvx",
        args=[f"{entry.package}@latest"],
        env={**MCP_LOG_ENV, **entry.extra_env},
    )


_BUILDERS = {
    RuntimeEnvironment.DOCKER: _docker_server,
    RuntimeEnvironment.WINDOWS: _windows_server,
    RuntimeEnvironment.UNIX: _unix_server,
}


def get_mcp_servers(environment: RuntimeEnvironment) -> List[MCPServerConfig]:
    """MCP server configurations for the given runtime environment."""
    build = _BUILDERS[environment]
    return [build(entry) for entry in MCP_CATALOG]
