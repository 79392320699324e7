"""Build-step configuration loader tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from levo_ci_runner.configuration.loader import (
    ConfigurationError,
    build_run_configuration,
    load_step_configuration,
    parse_mode,
)
from levo_ci_runner.configuration.runtime_settings import ExecutionMode, RuntimeSettings


def _write_file(path: Path, contents: str) -> Path:
    path.write_text(contents, encoding="utf-8")
    return path


def test_loads_yaml_configuration_with_defaults(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "levo-step.yaml",
        """
levo_credentials_id: levo-ci
target: "https://api.example.com"
test_plan: "ns:org:plan"
""",
    )

    configuration = load_step_configuration(config_path)

    assert configuration.levo_credentials_id == "levo-ci"
    assert configuration.mode is None
    assert configuration.target == "https://api.example.com"
    assert configuration.test_plan == "ns:org:plan"
    assert configuration.app_name is None
    assert configuration.generate_junit_report is False
    assert configuration.runtime == RuntimeSettings()
    assert configuration.path == config_path.resolve()


def test_resolves_multi_valued_fields_to_first_non_blank_candidate(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "levo-step.json",
        json.dumps(
            {
                "mode": ["", "app-name"],
                "levo_credentials_id": ["", "levo-ci", "other"],
                "app_name": ["  ", "my-api-app"],
                "environment": "production",
                "generate_junit_report": ["", "true"],
            }
        ),
    )

    configuration = load_step_configuration(config_path)

    assert configuration.mode is ExecutionMode.APP_NAME
    assert configuration.levo_credentials_id == "levo-ci"
    assert configuration.app_name == "my-api-app"
    assert configuration.generate_junit_report is True


def test_trims_identifiers_but_keeps_pattern_and_argument_whitespace() -> None:
    configuration = build_run_configuration(
        {
            "levo_credentials_id": "  levo-ci  ",
            "target": " https://api.example.com ",
            "endpoint_pattern": " /users/.* ",
            "extra_cli_args": "--header 'X-Trace: on' ",
        }
    )

    assert configuration.levo_credentials_id == "levo-ci"
    assert configuration.target == "https://api.example.com"
    assert configuration.endpoint_pattern == " /users/.* "
    assert configuration.extra_cli_args == "--header 'X-Trace: on' "


def test_reads_runtime_overrides() -> None:
    configuration = build_run_configuration(
        {
            "levo_credentials_id": "levo-ci",
            "runtime": {"docker_executable": "/usr/bin/podman", "image": "levoai/levo:beta"},
        }
    )

    assert configuration.runtime.docker_executable == "/usr/bin/podman"
    assert configuration.runtime.image == "levoai/levo:beta"


def test_missing_file_raises_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_step_configuration(tmp_path / "missing.yaml")


def test_non_mapping_root_raises_configuration_error(tmp_path: Path) -> None:
    config_path = _write_file(tmp_path / "levo-step.yaml", "- just\n- a list\n")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_step_configuration(config_path)


def test_missing_credentials_id_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="levo_credentials_id is required"):
        build_run_configuration({"levo_credentials_id": ["", "  "]})


def test_nested_mapping_value_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="target"):
        build_run_configuration({"levo_credentials_id": "levo-ci", "target": {"url": "x"}})


def test_invalid_junit_flag_raises_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="generate_junit_report"):
        build_run_configuration(
            {"levo_credentials_id": "levo-ci", "generate_junit_report": "sometimes"}
        )


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("test-plan", ExecutionMode.TEST_PLAN),
        ("TestPlan", ExecutionMode.TEST_PLAN),
        ("app_name", ExecutionMode.APP_NAME),
        ("Remote Test Run", ExecutionMode.REMOTE_TEST_RUN),
        (None, None),
    ],
)
def test_parse_mode_ignores_case_and_separators(value, expected) -> None:
    assert parse_mode(value) is expected


def test_parse_mode_rejects_unknown_mode() -> None:
    with pytest.raises(ConfigurationError, match="test-plan, app-name, remote-test-run"):
        parse_mode("conformance")
