"""Supervised execution of single external processes."""

from __future__ import annotations

import logging
import shlex
import subprocess
import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import IO, Protocol

from levo_ci_runner.credentials.credential_models import mask_secret

logger = logging.getLogger(__name__)

OutputSink = Callable[[str], None]

_TERMINATION_GRACE_SECONDS = 10


class TimeoutClass(Enum):
    """Timeout budget per kind of invocation, in seconds."""

    SHORT = 60
    MEDIUM = 600
    LONG = 1800

    @property
    def seconds(self) -> int:
        return self.value


class ProcessLaunchError(Exception):
    """Raised when an executable cannot be started at all."""


class ProcessTimeoutError(Exception):
    """Raised when a process exceeded its timeout class and was terminated."""

    def __init__(self, label: str, timeout: TimeoutClass, seconds: float | None = None) -> None:
        applied = timeout.seconds if seconds is None else seconds
        super().__init__(f"{label} timed out after {applied:g}s and was terminated.")
        self.label = label
        self.timeout = timeout


@dataclass(frozen=True)
class ProcessInvocation:
    """One external command with its supervision settings."""

    label: str
    argv: tuple[str, ...]
    timeout: TimeoutClass
    stream_output: bool = True
    env: Mapping[str, str] | None = None
    secrets: tuple[str, ...] = ()

    def render(self) -> str:
        return render_command_for_log(self.argv, self.secrets)


@dataclass(frozen=True)
class ProcessResult:
    """Exit status and captured output of a finished process."""

    exit_code: int
    output: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class Launcher(Protocol):  # pylint: disable=too-few-public-methods
    """Runs one invocation to completion and reports its exit code."""

    def run(self, invocation: ProcessInvocation) -> ProcessResult: ...


def mask_text(text: str, secrets: Iterable[str]) -> str:
    """Replace every occurrence of each secret with its masked rendering."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, mask_secret(secret))
    return text


def render_command_for_log(argv: Iterable[str], secrets: Iterable[str] = ()) -> str:
    """Render an argument vector as a shell line with secrets masked."""
    secret_values = tuple(secrets)
    return shlex.join(mask_text(arg, secret_values) for arg in argv)


class SubprocessLauncher:  # pylint: disable=too-few-public-methods
    """Launcher implementation using subprocess, streaming or capturing combined output."""

    def __init__(
        self,
        output_sink: OutputSink | None = None,
        *,
        termination_grace_seconds: float = _TERMINATION_GRACE_SECONDS,
        timeouts: Mapping[TimeoutClass, float] | None = None,
    ) -> None:
        self._output_sink = output_sink or _log_output_line
        self._grace_seconds = termination_grace_seconds
        self._timeouts = dict(timeouts or {})

    def run(self, invocation: ProcessInvocation) -> ProcessResult:
        logger.info("Starting launch for: %s", invocation.render())
        try:
            process = subprocess.Popen(  # pylint: disable=consider-using-with
                list(invocation.argv),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                env=dict(invocation.env) if invocation.env is not None else None,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            raise ProcessLaunchError(
                f"{invocation.label} could not be started: {invocation.render()}: {exc}"
            ) from exc

        captured: list[str] = []

        def _emit(line: str) -> None:
            masked = mask_text(line.rstrip("\n"), invocation.secrets)
            if invocation.stream_output:
                self._output_sink(masked)
            else:
                captured.append(masked)

        pump = threading.Thread(
            target=_pump_lines, args=(process.stdout, _emit), name="levo-output", daemon=True
        )
        pump.start()
        try:
            exit_code = process.wait(timeout=self._timeout_for(invocation.timeout))
        except subprocess.TimeoutExpired as exc:
            self._terminate(process, invocation.label)
            raise ProcessTimeoutError(
                invocation.label, invocation.timeout, self._timeout_for(invocation.timeout)
            ) from exc
        except BaseException:
            self._terminate(process, invocation.label)
            raise
        finally:
            pump.join(timeout=self._grace_seconds)
            if process.stdout is not None:
                process.stdout.close()

        logger.debug("%s finished with exit code %d", invocation.label, exit_code)
        return ProcessResult(exit_code=exit_code, output="\n".join(captured))

    def _timeout_for(self, timeout: TimeoutClass) -> float:
        return self._timeouts.get(timeout, timeout.seconds)

    def _terminate(self, process: subprocess.Popen[str], label: str) -> None:
        if process.poll() is not None:
            return
        logger.warning("Terminating %s (pid %d)", label, process.pid)
        process.terminate()
        try:
            process.wait(timeout=self._grace_seconds)
        except subprocess.TimeoutExpired:
            logger.warning("Killing %s after %ss grace period", label, self._grace_seconds)
            process.kill()
            process.wait()


def _pump_lines(stream: IO[str] | None, emit: Callable[[str], None]) -> None:
    if stream is None:
        return
    for line in stream:
        emit(line)


def _log_output_line(line: str) -> None:
    logger.info("%s", line)
