"""Process execution domain exports."""

from .process_runner import (
    Launcher,
    OutputSink,
    ProcessInvocation,
    ProcessLaunchError,
    ProcessResult,
    ProcessTimeoutError,
    SubprocessLauncher,
    TimeoutClass,
    mask_text,
    render_command_for_log,
)

__all__ = [
    "Launcher",
    "OutputSink",
    "ProcessInvocation",
    "ProcessLaunchError",
    "ProcessResult",
    "ProcessTimeoutError",
    "SubprocessLauncher",
    "TimeoutClass",
    "mask_text",
    "render_command_for_log",
]
