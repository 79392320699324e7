"""Build-step run use-case service."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from types import FrameType

from levo_ci_runner.configuration import ConfigurationError, load_step_configuration
from levo_ci_runner.container_invocation import (
    CommandBuilder,
    ExecutionHost,
    HostProbeError,
    WorkspaceState,
)
from levo_ci_runner.credentials import (
    CredentialResolutionError,
    CredentialResolver,
    CredentialStore,
)
from levo_ci_runner.process_execution import (
    Launcher,
    OutputSink,
    ProcessInvocation,
    ProcessLaunchError,
    ProcessResult,
    ProcessTimeoutError,
    SubprocessLauncher,
)
from levo_ci_runner.run_modes import RemoteTestRun, dispatch

from .credential_lifecycle import CredentialLifecycleManager, LoginError
from .run_contracts import JobResult, RunOutcome, RunRequest

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    """Raised when the main Levo command fails, times out or cannot be launched."""

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class RunCancelled(KeyboardInterrupt):
    """Raised in the orchestrating thread when the host asks the build to stop."""


def execute_levo_run(
    request: RunRequest,
    *,
    credential_store: CredentialStore,
    launcher: Launcher | None = None,
    host: ExecutionHost | None = None,
    output_sink: OutputSink | None = None,
) -> RunOutcome:
    """Execute one build step and return its successful outcome.

    Configuration and credential problems are raised before any process is
    launched. Login, execution and cancellation errors are raised after the
    credential cleanup has run.
    """
    configuration = load_step_configuration(request.config_path)
    dispatched = dispatch(configuration)
    resolved = CredentialResolver(credential_store).resolve(
        configuration.levo_credentials_id, configuration.secret_environment_id
    )

    workspace = WorkspaceState(Path(request.workspace).resolve())
    resolved_launcher = launcher or SubprocessLauncher(output_sink)
    builder = CommandBuilder(
        configuration.runtime, workspace, host or ExecutionHost.detect(), resolved_launcher
    )
    lifecycle = CredentialLifecycleManager(workspace, builder, resolved_launcher)
    logger.info("Running Levo in %s mode for workspace %s", dispatched.mode.value, workspace.root)

    try:
        with lifecycle.session(resolved.levo) as session:
            environment_file = False
            if resolved.environment is not None:
                if isinstance(dispatched.variant, RemoteTestRun):
                    logger.warning("Secret environment is not used by remote test runs; ignoring.")
                else:
                    environment_file = lifecycle.materialize_environment(
                        session, resolved.environment
                    )
            invocation = builder.main_command(
                dispatched,
                resolved.levo,
                export_junit=configuration.generate_junit_report,
                environment_file=environment_file,
            )
            result = _run_main_command(resolved_launcher, invocation)
    except (ProcessLaunchError, HostProbeError) as exc:
        raise ExecutionError(str(exc)) from exc

    if not result.succeeded:
        raise ExecutionError(
            f"Levo {dispatched.mode.value} failed with exit code {result.exit_code}.",
            result.exit_code,
        )
    junit_report_path = None
    if configuration.generate_junit_report and not isinstance(dispatched.variant, RemoteTestRun):
        junit_report_path = workspace.junit_report_path
    return RunOutcome(
        result=JobResult.SUCCESS,
        mode=dispatched.mode,
        exit_code=result.exit_code,
        junit_report_path=junit_report_path,
    )


def run_build_step(
    request: RunRequest,
    *,
    credential_store: CredentialStore,
    launcher: Launcher | None = None,
    host: ExecutionHost | None = None,
    output_sink: OutputSink | None = None,
) -> RunOutcome:
    """Execute one build step and map every terminal condition to a job result."""
    try:
        return execute_levo_run(
            request,
            credential_store=credential_store,
            launcher=launcher,
            host=host,
            output_sink=output_sink,
        )
    except (ConfigurationError, CredentialResolutionError) as exc:
        logger.error("%s", exc)
        return RunOutcome(result=JobResult.FAILURE, message=str(exc))
    except (LoginError, ExecutionError) as exc:
        logger.error("%s", exc)
        return RunOutcome(result=JobResult.FAILURE, exit_code=exc.exit_code, message=str(exc))
    except KeyboardInterrupt:
        logger.warning("Build step cancelled; credentials were cleaned up.")
        return RunOutcome(result=JobResult.ABORTED, message="Build step cancelled.")


@contextmanager
def cancellation_on_sigterm() -> Iterator[None]:
    """Translate SIGTERM into RunCancelled so cleanup scopes unwind normally."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _raise_cancelled(signum: int, frame: FrameType | None) -> None:
        raise RunCancelled(f"Received signal {signum}")

    previous = signal.signal(signal.SIGTERM, _raise_cancelled)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def _run_main_command(launcher: Launcher, invocation: ProcessInvocation) -> ProcessResult:
    try:
        return launcher.run(invocation)
    except ProcessTimeoutError as exc:
        raise ExecutionError(f"Levo run failed: {exc}") from exc
