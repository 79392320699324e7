"""Build-step configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from .field_resolution import first_non_blank, resolve_flag
from .runtime_settings import (
    DEFAULT_DOCKER_EXECUTABLE,
    DEFAULT_LEVO_IMAGE,
    ExecutionMode,
    RunConfiguration,
    RuntimeSettings,
)


class ConfigurationError(Exception):
    """Raised when the build-step configuration is missing, conflicting or invalid."""


_TEXT_FIELDS = (
    "target",
    "test_plan",
    "app_name",
    "environment",
    "categories",
    "methods",
    "exclude_methods",
    "endpoint_pattern",
    "exclude_endpoint_pattern",
    "test_users",
    "data_source",
    "run_on",
    "fail_severity",
    "fail_scope",
    "fail_threshold",
    "extra_cli_args",
    "secret_environment_id",
)

# Whitespace in these fields is meaningful and is passed through unchanged.
_VERBATIM_FIELDS = frozenset({"endpoint_pattern", "exclude_endpoint_pattern", "extra_cli_args"})

_MODE_ALIASES = {
    "testplan": ExecutionMode.TEST_PLAN,
    "appname": ExecutionMode.APP_NAME,
    "remotetestrun": ExecutionMode.REMOTE_TEST_RUN,
}


def load_step_configuration(config_path: Path | str) -> RunConfiguration:
    """Load the build-step file and resolve every field to a single value."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}
    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    configuration = build_run_configuration(parsed)
    return replace(configuration, path=path.resolve())


def build_run_configuration(raw: Mapping[str, Any]) -> RunConfiguration:
    """Resolve raw submitted fields (scalars or candidate lists) into a RunConfiguration."""
    values = {name: _resolve_text(raw.get(name), name) for name in _TEXT_FIELDS}
    credentials_id = _resolve_text(raw.get("levo_credentials_id"), "levo_credentials_id")
    if credentials_id is None:
        raise ConfigurationError("levo_credentials_id is required.")
    try:
        generate_junit_report = resolve_flag(raw.get("generate_junit_report"))
    except ValueError as exc:
        raise ConfigurationError(f"generate_junit_report: {exc}") from exc

    return RunConfiguration(
        levo_credentials_id=credentials_id,
        mode=parse_mode(_resolve_text(raw.get("mode"), "mode")),
        generate_junit_report=generate_junit_report,
        runtime=_parse_runtime_section(raw.get("runtime")),
        **values,
    )


def parse_mode(value: str | None) -> ExecutionMode | None:
    """Map a submitted mode name to an ExecutionMode, ignoring case and separators."""
    if value is None:
        return None
    key = "".join(ch for ch in value.lower() if ch not in "-_ ")
    try:
        return _MODE_ALIASES[key]
    except KeyError as exc:
        allowed = ", ".join(mode.value for mode in ExecutionMode)
        raise ConfigurationError(f"mode '{value}' is not one of: {allowed}.") from exc


def _parse_runtime_section(value: Any) -> RuntimeSettings:
    if value is None:
        return RuntimeSettings()
    if not isinstance(value, Mapping):
        raise ConfigurationError("runtime must be a mapping.")
    docker_executable = _resolve_text(value.get("docker_executable"), "runtime.docker_executable")
    image = _resolve_text(value.get("image"), "runtime.image")
    return RuntimeSettings(
        docker_executable=docker_executable or DEFAULT_DOCKER_EXECUTABLE,
        image=image or DEFAULT_LEVO_IMAGE,
    )


def _resolve_text(value: Any, field_name: str) -> str | None:
    """Resolve one text field; trimmed unless its whitespace is meaningful."""
    if isinstance(value, Mapping):
        raise ConfigurationError(f"{field_name} must be a string or list of strings.")
    if isinstance(value, Sequence) and not isinstance(value, str):
        for item in value:
            if isinstance(item, (Mapping, list)):
                raise ConfigurationError(f"{field_name} entries must be scalar values.")
    text = first_non_blank(value)
    if text is None or field_name in _VERBATIM_FIELDS:
        return text
    return text.strip()
