"""Command line interface entry point."""

from __future__ import annotations

import sys

import click

from levo_ci_runner.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    load_step_configuration,
    write_placeholder_configuration,
)
from levo_ci_runner.credentials import CredentialResolutionError, YamlCredentialStore
from levo_ci_runner.logging_setup import configure_build_logging
from levo_ci_runner.run_execution import (
    JobResult,
    RunRequest,
    cancellation_on_sigterm,
    run_build_step,
)
from levo_ci_runner.run_modes import dispatch

CREDENTIALS_ENVVAR = "LEVO_CI_CREDENTIALS_FILE"


class CliError(Exception):
    """Custom CLI error."""

    def __init__(self, message: str, exit_code: int = 1) -> None:
        super().__init__(message)
        self.exit_code = exit_code


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="levo-ci-runner")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Run Levo API security tests as a CI build step."""
    configure_build_logging(verbose=verbose)


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML build-step configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder build-step configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="validate")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON build-step configuration file",
)
def validate(config_path: str) -> None:
    """Validate the build-step configuration without launching anything."""
    try:
        dispatched = dispatch(load_step_configuration(config_path))
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc
    for warning in dispatched.warnings:
        click.echo(f"warning: {warning}", err=True)
    click.echo(f"mode: {dispatched.mode.value}")


@cli.command(name="run")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON build-step configuration file",
)
@click.option(
    "--credentials",
    "credentials_path",
    required=True,
    envvar=CREDENTIALS_ENVVAR,
    show_envvar=True,
    type=click.Path(path_type=str),
    help="Path to the YAML credentials file",
)
@click.option(
    "--workspace",
    "workspace",
    required=False,
    default=".",
    show_default=True,
    type=click.Path(file_okay=False, path_type=str),
    help="Build workspace mounted into the Levo container",
)
def run_step(config_path: str, credentials_path: str, workspace: str) -> None:
    """Log in, run the configured Levo tests and clean up credentials."""
    try:
        credential_store = YamlCredentialStore.from_file(credentials_path)
    except CredentialResolutionError as exc:
        raise CliError(str(exc)) from exc

    with cancellation_on_sigterm():
        outcome = run_build_step(
            RunRequest(config_path=config_path, workspace=workspace),
            credential_store=credential_store,
            output_sink=click.echo,
        )
    if outcome.result is not JobResult.SUCCESS:
        raise CliError(outcome.message or outcome.result.value, outcome.result.exit_status)
    if outcome.junit_report_path is not None:
        click.echo(f"JUnit report: {outcome.junit_report_path}")
    click.echo(outcome.result.value)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return exc.exit_code
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
