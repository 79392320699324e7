"""Execution mode selection and per-mode validation."""

from __future__ import annotations

import logging
import re
import shlex
from dataclasses import dataclass

from levo_ci_runner.configuration.loader import ConfigurationError
from levo_ci_runner.configuration.runtime_settings import ExecutionMode, RunConfiguration

logger = logging.getLogger(__name__)

DEFAULT_EXECUTION_MODE = ExecutionMode.TEST_PLAN

RUN_ON_CLOUD = "cloud"
RUN_ON_PREMISES = "on-prem"

DATA_SOURCE_TEST_USER_DATA = "Test User Data"
DATA_SOURCE_TRAFFIC = "Traffic"
DATA_SOURCES = (DATA_SOURCE_TEST_USER_DATA, DATA_SOURCE_TRAFFIC)

_RUN_ON_SYNONYMS = {
    "cloud": RUN_ON_CLOUD,
    "levocloud": RUN_ON_CLOUD,
    "saas": RUN_ON_CLOUD,
    "onprem": RUN_ON_PREMISES,
    "onpremise": RUN_ON_PREMISES,
    "onpremises": RUN_ON_PREMISES,
    "selfhosted": RUN_ON_PREMISES,
}


@dataclass(frozen=True)
class TestPlanRun:
    """Run a pre-defined test plan against a target."""

    __test__ = False

    target: str
    test_plan: str


@dataclass(frozen=True)
class AppNameRun:
    """Run tests derived from an application's registered API configuration."""

    app_name: str
    environment: str
    target: str | None = None
    categories: str | None = None
    data_source: str | None = None


@dataclass(frozen=True)
class RemoteTestRun:  # pylint: disable=too-many-instance-attributes
    """Trigger a test run executed by the remote service."""

    app_name: str
    environment: str
    data_source: str
    run_on: str
    target: str
    categories: str | None = None
    methods: str | None = None
    exclude_methods: str | None = None
    endpoint_pattern: str | None = None
    exclude_endpoint_pattern: str | None = None
    test_users: str | None = None
    fail_severity: str | None = None
    fail_scope: str | None = None
    fail_threshold: str | None = None


RunMode = TestPlanRun | AppNameRun | RemoteTestRun


@dataclass(frozen=True)
class DispatchedRun:
    """Validated mode variant together with the non-fatal findings."""

    mode: ExecutionMode
    variant: RunMode
    extra_args: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


def select_mode(configuration: RunConfiguration) -> ExecutionMode:
    """Return the explicit mode, or the test-plan default when none was submitted."""
    return configuration.mode or DEFAULT_EXECUTION_MODE


def dispatch(configuration: RunConfiguration) -> DispatchedRun:
    """Validate the configuration for its mode and build the matching variant.

    Raises:
      ConfigurationError: If a required field is missing, fields conflict, a
        regular expression does not compile, or an enumerated value is unknown.
    """
    mode = select_mode(configuration)
    _require_single_subject(configuration, mode)
    compile_endpoint_pattern(configuration.endpoint_pattern, "endpoint_pattern")
    compile_endpoint_pattern(configuration.exclude_endpoint_pattern, "exclude_endpoint_pattern")
    test_users, warnings = split_test_users(configuration.test_users)
    extra_args = tokenize_extra_arguments(configuration.extra_cli_args)

    variant: RunMode
    if mode is ExecutionMode.TEST_PLAN:
        variant = TestPlanRun(
            target=_require(configuration.target, "target", mode),
            test_plan=_require(configuration.test_plan, "test_plan", mode),
        )
    elif mode is ExecutionMode.APP_NAME:
        variant = AppNameRun(
            app_name=_require(configuration.app_name, "app_name", mode),
            environment=_require(configuration.environment, "environment", mode),
            target=configuration.target,
            categories=configuration.categories,
            data_source=configuration.data_source,
        )
    else:
        variant = RemoteTestRun(
            app_name=_require(configuration.app_name, "app_name", mode),
            environment=_require(configuration.environment, "environment", mode),
            data_source=normalize_data_source(
                _require(configuration.data_source, "data_source", mode)
            ),
            run_on=normalize_run_on(_require(configuration.run_on, "run_on", mode)),
            target=_require(configuration.target, "target", mode),
            categories=configuration.categories,
            methods=configuration.methods,
            exclude_methods=configuration.exclude_methods,
            endpoint_pattern=configuration.endpoint_pattern,
            exclude_endpoint_pattern=configuration.exclude_endpoint_pattern,
            test_users=test_users,
            fail_severity=configuration.fail_severity,
            fail_scope=configuration.fail_scope,
            fail_threshold=configuration.fail_threshold,
        )

    for warning in warnings:
        logger.warning(warning)
    return DispatchedRun(mode=mode, variant=variant, extra_args=extra_args, warnings=warnings)


def normalize_run_on(value: str) -> str:
    """Map a run-on value or synonym to ``cloud`` or ``on-prem``."""
    key = "".join(ch for ch in value.lower() if ch not in "-_ ")
    try:
        return _RUN_ON_SYNONYMS[key]
    except KeyError as exc:
        raise ConfigurationError(
            f"run_on '{value}' must be one of: {RUN_ON_CLOUD}, {RUN_ON_PREMISES}."
        ) from exc


def normalize_data_source(value: str) -> str:
    """Return the canonical data source matching ``value`` case-insensitively."""
    for canonical in DATA_SOURCES:
        if value.strip().lower() == canonical.lower():
            return canonical
    raise ConfigurationError(
        f"data_source '{value}' must be one of: {', '.join(DATA_SOURCES)}."
    )


def compile_endpoint_pattern(pattern: str | None, field_name: str) -> re.Pattern[str] | None:
    """Compile an endpoint regular expression, surfacing the syntax diagnostic."""
    if pattern is None:
        return None
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(
            f"{field_name} '{pattern}' is not a valid regular expression: {exc}"
        ) from exc


def tokenize_extra_arguments(extra_cli_args: str | None) -> tuple[str, ...]:
    """Split free-form extra CLI arguments the way a POSIX shell would."""
    if not extra_cli_args:
        return ()
    try:
        return tuple(shlex.split(extra_cli_args))
    except ValueError as exc:
        raise ConfigurationError(f"extra_cli_args cannot be tokenized: {exc}") from exc


def split_test_users(value: str | None) -> tuple[str | None, tuple[str, ...]]:
    """Trim a comma-separated test-user list.

    Returns:
      The cleaned list (``None`` when empty) and warnings for blank entries.
    """
    if value is None:
        return None, ()
    entries = [entry.strip() for entry in value.split(",")]
    users = [entry for entry in entries if entry]
    blank_count = len(entries) - len(users)
    warnings: tuple[str, ...] = ()
    if blank_count:
        noun = "entry" if blank_count == 1 else "entries"
        warnings = (f"test_users contains {blank_count} blank {noun}; ignoring.",)
    return (",".join(users) or None), warnings


def _require_single_subject(configuration: RunConfiguration, mode: ExecutionMode) -> None:
    if configuration.test_plan and configuration.app_name:
        raise ConfigurationError(
            f"test_plan and app_name are mutually exclusive ({mode.value} mode); set only one."
        )
    if mode is not ExecutionMode.TEST_PLAN and configuration.test_plan:
        raise ConfigurationError(f"test_plan is not used in {mode.value} mode; remove it.")


def _require(value: str | None, field_name: str, mode: ExecutionMode) -> str:
    if value is None:
        raise ConfigurationError(f"{field_name} is required in {mode.value} mode.")
    return value
