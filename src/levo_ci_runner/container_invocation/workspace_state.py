"""Workspace directories and transient files shared with the Levo container."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path, PureWindowsPath

CREDENTIAL_STORE_DIRNAME = ".levoconfig"
REPORTS_DIRNAME = "levo-reports"
ENVIRONMENT_FILE_NAME = "environment.yaml"
JUNIT_REPORT_FILE_NAME = "junit.xml"


@dataclass(frozen=True)
class WorkspaceState:
    """Handle on the per-workspace credential store, report folder and environment file."""

    root: Path

    @property
    def credential_store_dir(self) -> Path:
        return self.root / CREDENTIAL_STORE_DIRNAME

    @property
    def reports_dir(self) -> Path:
        return self.root / REPORTS_DIRNAME

    @property
    def environment_file(self) -> Path:
        return self.root / ENVIRONMENT_FILE_NAME

    @property
    def junit_report_path(self) -> Path:
        return self.reports_dir / JUNIT_REPORT_FILE_NAME

    def ensure_directories(self) -> None:
        self.credential_store_dir.mkdir(parents=True, exist_ok=True)
        self.reports_dir.mkdir(parents=True, exist_ok=True)

    def purge_credential_store(self) -> list[tuple[Path, OSError]]:
        """Delete every entry of the credential store, collecting failures instead of raising."""
        failures: list[tuple[Path, OSError]] = []
        if not self.credential_store_dir.is_dir():
            return failures
        for entry in sorted(self.credential_store_dir.iterdir()):
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as exc:
                failures.append((entry, exc))
        return failures

    def write_environment_file(self, text: str) -> Path:
        """Materialize the secret environment, replacing any stale copy."""
        self.environment_file.unlink(missing_ok=True)
        self.environment_file.write_text(text, encoding="utf-8")
        return self.environment_file

    def remove_environment_file(self) -> bool:
        if not self.environment_file.exists():
            return False
        self.environment_file.unlink()
        return True


def to_container_mount_path(path: Path | str, *, is_unix: bool) -> str:
    """Render a host path the way the container runtime expects it in ``-v`` bindings.

    >>> to_container_mount_path("C:\\\\jenkins\\\\ws", is_unix=False)
    'C:/jenkins/ws'
    """
    if is_unix:
        return str(path)
    return PureWindowsPath(str(path)).as_posix()
