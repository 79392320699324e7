"""CLI orchestration integration tests."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner
from levo_ci_runner.cli import cli, main
from levo_ci_runner.container_invocation import ExecutionHost
from levo_ci_runner.process_execution import ProcessResult
from levo_ci_runner.run_execution import RunCancelled
from levo_ci_runner.run_execution import levo_run_use_case


def _write_config(tmp_path: Path, **fields) -> Path:
    config = {
        "levo_credentials_id": "levo-ci",
        "target": "https://api.example.com",
        "test_plan": "ns:org:plan",
        **fields,
    }
    path = tmp_path / "levo-step.yaml"
    path.write_text(yaml.safe_dump(config), encoding="utf-8")
    return path


def _write_credentials(tmp_path: Path) -> Path:
    path = tmp_path / "credentials.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "levo-ci": {
                    "type": "levo_cli",
                    "organization_id": "org-1",
                    "authorization_key": "ABCDEFGHIJ",
                },
                "env": {"type": "secret_text", "secret": "token: abc"},
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def fake_docker(monkeypatch: pytest.MonkeyPatch, recording_launcher, default_responder):
    """Replace the subprocess launcher used by the run command with a recording double."""
    state = {"main": ProcessResult(exit_code=0)}

    def _respond(invocation):
        if "test" in invocation.argv:
            state["sink"]("Levo test run complete")
            return state["main"]
        return default_responder(invocation)

    launcher = recording_launcher(_respond)

    def _launcher_factory(output_sink=None, **_kwargs):
        state["sink"] = output_sink
        return launcher

    monkeypatch.setattr(levo_run_use_case, "SubprocessLauncher", _launcher_factory)
    monkeypatch.setattr(
        ExecutionHost, "detect", classmethod(lambda cls: cls(is_unix=True, is_linux=False))
    )
    state["launcher"] = launcher
    return state


def test_generate_config_command_writes_scaffold(tmp_path: Path) -> None:
    runner = CliRunner()
    output_path = tmp_path / "levo-step.yaml"

    result = runner.invoke(cli, ["generate-config", "--output", str(output_path)])

    assert result.exit_code == 0
    assert output_path.exists()
    assert str(output_path.resolve()) in result.output


def test_generate_config_refuses_to_overwrite(tmp_path: Path, capsys) -> None:
    output_path = tmp_path / "levo-step.yaml"
    output_path.write_text("existing", encoding="utf-8")

    exit_code = main(["generate-config", "--output", str(output_path)])

    assert exit_code == 1
    assert "already exists" in capsys.readouterr().err


def test_validate_command_prints_mode_and_warnings(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path,
        mode="remote-test-run",
        test_plan=None,
        app_name="my-api-app",
        environment="staging",
        data_source="Traffic",
        run_on="onprem",
        test_users="alice,,bob",
    )
    runner = CliRunner()

    result = runner.invoke(cli, ["validate", "--config", str(config_path)])

    assert result.exit_code == 0
    assert "mode: remote-test-run" in result.output
    assert "blank entry" in result.output


def test_run_command_executes_and_reports_success(tmp_path: Path, fake_docker) -> None:
    config_path = _write_config(tmp_path, generate_junit_report=True)
    credentials_path = _write_credentials(tmp_path)
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    runner = CliRunner()

    result = runner.invoke(
        cli,
        [
            "run",
            "--config",
            str(config_path),
            "--credentials",
            str(credentials_path),
            "--workspace",
            str(workspace),
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Levo test run complete" in result.output
    assert "ABCDEFGHIJ" not in result.output
    assert "JUnit report:" in result.output
    assert "SUCCESS" in result.output.splitlines()
    assert fake_docker["launcher"].subcommands() == ["pull", "login", "test", "logout"]


def test_run_command_reads_credentials_path_from_environment(
    tmp_path: Path, fake_docker, monkeypatch: pytest.MonkeyPatch
) -> None:
    config_path = _write_config(tmp_path)
    monkeypatch.setenv("LEVO_CI_CREDENTIALS_FILE", str(_write_credentials(tmp_path)))
    workspace = tmp_path / "workspace"
    workspace.mkdir()

    exit_code = main(["run", "--config", str(config_path), "--workspace", str(workspace)])

    assert exit_code == 0


def test_run_command_failure_returns_one(tmp_path: Path, fake_docker, capsys) -> None:
    fake_docker["main"] = ProcessResult(exit_code=5)
    config_path = _write_config(tmp_path)
    credentials_path = _write_credentials(tmp_path)
    workspace = tmp_path / "workspace"
    workspace.mkdir()

    exit_code = main(
        [
            "run",
            "--config",
            str(config_path),
            "--credentials",
            str(credentials_path),
            "--workspace",
            str(workspace),
        ]
    )

    assert exit_code == 1
    assert "failed with exit code 5" in capsys.readouterr().err
    assert fake_docker["launcher"].subcommands()[-1] == "logout"


def test_run_command_cancellation_returns_130(tmp_path: Path, fake_docker, capsys) -> None:
    fake_docker["main"] = RunCancelled("SIGTERM")
    config_path = _write_config(tmp_path, secret_environment_id="env")
    credentials_path = _write_credentials(tmp_path)
    workspace = tmp_path / "workspace"
    workspace.mkdir()

    exit_code = main(
        [
            "run",
            "--config",
            str(config_path),
            "--credentials",
            str(credentials_path),
            "--workspace",
            str(workspace),
        ]
    )

    assert exit_code == 130
    assert "cancelled" in capsys.readouterr().err
    assert fake_docker["launcher"].subcommands()[-1] == "logout"
    assert not (workspace / "environment.yaml").exists()
