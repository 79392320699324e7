"""Container invocation domain exports."""

from .command_builder import (
    CONTAINER_JUNIT_PATH,
    CommandBuilder,
    ExecutionHost,
    HostProbeError,
)
from .workspace_state import WorkspaceState, to_container_mount_path

__all__ = [
    "CONTAINER_JUNIT_PATH",
    "CommandBuilder",
    "ExecutionHost",
    "HostProbeError",
    "WorkspaceState",
    "to_container_mount_path",
]
