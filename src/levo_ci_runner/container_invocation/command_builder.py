"""Deterministic construction of containerized Levo CLI invocations."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from levo_ci_runner.configuration.runtime_settings import RuntimeSettings
from levo_ci_runner.credentials.credential_models import LevoCredentials
from levo_ci_runner.process_execution.process_runner import (
    Launcher,
    ProcessInvocation,
    TimeoutClass,
)
from levo_ci_runner.run_modes.mode_dispatch import (
    AppNameRun,
    DispatchedRun,
    RemoteTestRun,
    TestPlanRun,
)

from .workspace_state import WorkspaceState, to_container_mount_path

CONTAINER_CONFIG_DIR = "/home/levo/.config/configstore"
CONTAINER_REPORTS_DIR = "/home/levo/reports"
CONTAINER_WORK_DIR = "/home/levo/work"
CONTAINER_JUNIT_PATH = f"{CONTAINER_REPORTS_DIR}/junit.xml"
TERMINAL_TYPE = "xterm-256color"
REMOTE_RUN_VERBOSITY = "INFO"


class HostProbeError(Exception):
    """Raised when the user/group id helper commands fail."""


@dataclass(frozen=True)
class ExecutionHost:
    """Facts about the machine the container runtime runs on."""

    is_unix: bool
    is_linux: bool

    @classmethod
    def detect(cls) -> ExecutionHost:
        return cls(
            is_unix=not sys.platform.startswith("win"),
            is_linux=sys.platform.startswith("linux"),
        )


class CommandBuilder:
    """Build argument vectors for pull, login, logout and the main Levo command."""

    def __init__(
        self,
        runtime: RuntimeSettings,
        workspace: WorkspaceState,
        host: ExecutionHost,
        launcher: Launcher,
    ) -> None:
        self._runtime = runtime
        self._workspace = workspace
        self._host = host
        self._launcher = launcher
        self._local_ids: tuple[str, str] | None = None

    def pull_command(self) -> ProcessInvocation:
        return ProcessInvocation(
            label="image pull",
            argv=(self._runtime.docker_executable, "pull", self._runtime.image),
            timeout=TimeoutClass.MEDIUM,
        )

    def login_command(self, credentials: LevoCredentials) -> ProcessInvocation:
        argv = self.container_prefix(credentials.base_url) + (
            "login",
            "-k",
            credentials.authorization_key,
            "-o",
            credentials.organization_id,
        )
        return ProcessInvocation(
            label="levo login",
            argv=argv,
            timeout=TimeoutClass.LONG,
            secrets=(credentials.authorization_key,),
        )

    def logout_command(self, credentials: LevoCredentials) -> ProcessInvocation:
        return ProcessInvocation(
            label="levo logout",
            argv=self.container_prefix(credentials.base_url) + ("logout",),
            timeout=TimeoutClass.MEDIUM,
        )

    def main_command(
        self,
        dispatched: DispatchedRun,
        credentials: LevoCredentials,
        *,
        export_junit: bool = False,
        environment_file: bool = False,
    ) -> ProcessInvocation:
        variant = dispatched.variant
        if isinstance(variant, RemoteTestRun):
            arguments = _remote_test_run_arguments(variant, credentials)
        else:
            arguments = _test_arguments(variant, credentials)
            if export_junit:
                arguments.append(f"--export-junit-xml={CONTAINER_JUNIT_PATH}")
            if environment_file:
                arguments.extend(("--env-file", self._workspace.environment_file.name))
        arguments.extend(dispatched.extra_args)
        return ProcessInvocation(
            label=f"levo {dispatched.mode.value}",
            argv=self.container_prefix(credentials.base_url) + tuple(arguments),
            timeout=TimeoutClass.LONG,
            secrets=(credentials.authorization_key,),
        )

    def container_prefix(self, base_url: str) -> tuple[str, ...]:
        """Return ``docker run`` with volumes, environment and image, creating folders."""
        self._workspace.ensure_directories()
        argv = [self._runtime.docker_executable, "run"]
        for host_path, container_path in (
            (self._workspace.credential_store_dir, CONTAINER_CONFIG_DIR),
            (self._workspace.reports_dir, CONTAINER_REPORTS_DIR),
            (self._workspace.root, CONTAINER_WORK_DIR),
        ):
            mount = to_container_mount_path(host_path, is_unix=self._host.is_unix)
            argv.extend(("-v", f"{mount}:{container_path}:rw"))
        argv.extend(("-e", f"TERM={TERMINAL_TYPE}"))
        argv.extend(("-e", f"LEVO_BASE_URL={base_url}"))
        if self._host.is_linux:
            user_id, group_id = self._probe_local_ids()
            argv.extend(("-e", f"LOCAL_USER_ID={user_id}"))
            argv.extend(("-e", f"LOCAL_GROUP_ID={group_id}"))
        argv.append(self._runtime.image)
        return tuple(argv)

    def _probe_local_ids(self) -> tuple[str, str]:
        if self._local_ids is None:
            self._local_ids = (self._probe_id("-u"), self._probe_id("-g"))
        return self._local_ids

    def _probe_id(self, flag: str) -> str:
        result = self._launcher.run(
            ProcessInvocation(
                label=f"id {flag}",
                argv=("id", flag),
                timeout=TimeoutClass.SHORT,
                stream_output=False,
            )
        )
        value = result.output.strip()
        if not result.succeeded or not value.isdigit():
            raise HostProbeError(
                f"'id {flag}' failed (exit code {result.exit_code}, output {value!r})."
            )
        return value


def _test_arguments(variant: TestPlanRun | AppNameRun, credentials: LevoCredentials) -> list[str]:
    arguments = ["test"]
    if credentials.organization_id:
        arguments.extend(("--organization", credentials.organization_id))
    if isinstance(variant, AppNameRun):
        arguments.extend(("--app-name", variant.app_name, "--env", variant.environment))
        _extend_optional(arguments, "--categories", variant.categories)
        _extend_optional(arguments, "--data-source", variant.data_source)
        _extend_optional(arguments, "--target-url", variant.target)
    else:
        arguments.extend(("--test-plan", variant.test_plan, "--target-url", variant.target))
    return arguments


def _remote_test_run_arguments(
    variant: RemoteTestRun, credentials: LevoCredentials
) -> list[str]:
    arguments = [
        "remote-test-run",
        "--app-name",
        variant.app_name,
        "--env",
        variant.environment,
        "--data-source",
        variant.data_source,
        "--run-on",
        variant.run_on,
    ]
    for flag, value in (
        ("--categories", variant.categories),
        ("--methods", variant.methods),
        ("--exclude-methods", variant.exclude_methods),
        ("--endpoint-pattern", variant.endpoint_pattern),
        ("--exclude-endpoint-pattern", variant.exclude_endpoint_pattern),
        ("--test-users", variant.test_users),
    ):
        _extend_optional(arguments, flag, value)
    arguments.extend(("--target-url", variant.target))
    for flag, value in (
        ("--fail-severity", variant.fail_severity),
        ("--fail-scope", variant.fail_scope),
        ("--fail-threshold", variant.fail_threshold),
    ):
        _extend_optional(arguments, flag, value)
    arguments.extend(
        (
            "--key",
            credentials.authorization_key,
            "--organization",
            credentials.organization_id,
            "--verbosity",
            REMOTE_RUN_VERBOSITY,
        )
    )
    return arguments


def _extend_optional(arguments: list[str], flag: str, value: str | None) -> None:
    if value:
        arguments.extend((flag, value))
