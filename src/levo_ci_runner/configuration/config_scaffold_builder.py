"""Build-step configuration scaffold generation helpers."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CONFIG_FILENAME = "levo-step.yaml"

_CONFIG_SCAFFOLD_TEMPLATE = """# Build-step configuration template for levo-ci-runner.
# Replace every <REQUIRED> placeholder before running validate or run.
# Any field may also be given as a list; the first non-blank entry wins.

# One of: test-plan, app-name, remote-test-run (default: test-plan).
mode: "test-plan"

# Id of a levo_cli entry in the credentials file.
levo_credentials_id: "<REQUIRED>"
# Optional id of a secret_text or secret_file entry holding environment.yaml.
# secret_environment_id: "<OPTIONAL>"

# test-plan mode: target and test_plan are required, app_name must be unset.
target: "<REQUIRED>"
test_plan: "<REQUIRED>"

# app-name mode: app_name and environment are required, target is optional.
# app_name: "<REQUIRED>"
# environment: "<REQUIRED>"
# categories: "<OPTIONAL>"
# data_source: "<OPTIONAL>"

# remote-test-run mode additionally requires data_source, run_on and target.
# data_source: "Test User Data"   # or "Traffic"
# run_on: "cloud"                 # or "on-prem"
# methods: "<OPTIONAL>"
# exclude_methods: "<OPTIONAL>"
# endpoint_pattern: "<OPTIONAL>"
# exclude_endpoint_pattern: "<OPTIONAL>"
# test_users: "<OPTIONAL>"        # comma separated
# fail_severity: "<OPTIONAL>"
# fail_scope: "<OPTIONAL>"
# fail_threshold: "<OPTIONAL>"

generate_junit_report: false
# extra_cli_args: "<OPTIONAL>"

# runtime:
#   docker_executable: "docker"
#   image: "levoai/levo:stable"
"""


def build_placeholder_configuration() -> str:
    """Build a build-step configuration template with placeholders and inline guidance."""
    return _CONFIG_SCAFFOLD_TEMPLATE


def write_placeholder_configuration(output_path: Path | str) -> Path:
    """Write the placeholder build-step template to the requested output path.

    Args:
      output_path: Destination file path for the scaffold.

    Returns:
      The resolved destination path.

    Raises:
      FileExistsError: If the destination file already exists.
      OSError: If writing the scaffold fails.
    """
    destination = Path(output_path)
    if destination.exists():
        raise FileExistsError(f"Configuration file already exists: {destination.resolve()}")
    destination.write_text(build_placeholder_configuration(), encoding="utf-8")
    return destination.resolve()
