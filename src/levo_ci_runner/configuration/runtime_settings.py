"""Configuration domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

DEFAULT_DOCKER_EXECUTABLE = "docker"
DEFAULT_LEVO_IMAGE = "levoai/levo:stable"


class ExecutionMode(str, Enum):
    """Supported ways of running the Levo CLI."""

    TEST_PLAN = "test-plan"
    APP_NAME = "app-name"
    REMOTE_TEST_RUN = "remote-test-run"


@dataclass(frozen=True)
class RuntimeSettings:
    """Container runtime used to launch the Levo CLI."""

    docker_executable: str = DEFAULT_DOCKER_EXECUTABLE
    image: str = DEFAULT_LEVO_IMAGE


@dataclass(frozen=True)
class RunConfiguration:  # pylint: disable=too-many-instance-attributes
    """Resolved build-step configuration, one value per field."""

    levo_credentials_id: str
    mode: ExecutionMode | None = None
    target: str | None = None
    test_plan: str | None = None
    app_name: str | None = None
    environment: str | None = None
    categories: str | None = None
    methods: str | None = None
    exclude_methods: str | None = None
    endpoint_pattern: str | None = None
    exclude_endpoint_pattern: str | None = None
    test_users: str | None = None
    data_source: str | None = None
    run_on: str | None = None
    fail_severity: str | None = None
    fail_scope: str | None = None
    fail_threshold: str | None = None
    extra_cli_args: str | None = None
    generate_junit_report: bool = False
    secret_environment_id: str | None = None
    runtime: RuntimeSettings = field(default_factory=RuntimeSettings)
    path: Path | None = None
