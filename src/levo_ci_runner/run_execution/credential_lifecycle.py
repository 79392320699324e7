"""Credential lifecycle around one containerized Levo run.

The protocol for a run is purge, image refresh, login, main command and
cleanup. Cleanup (environment file removal, logout, credential-store purge)
runs in a ``finally`` scope, so it executes exactly once whether the main
command succeeded, failed, timed out or was interrupted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from levo_ci_runner.container_invocation.command_builder import CommandBuilder, HostProbeError
from levo_ci_runner.container_invocation.workspace_state import WorkspaceState
from levo_ci_runner.credentials.credential_models import LevoCredentials
from levo_ci_runner.process_execution.process_runner import (
    Launcher,
    ProcessLaunchError,
    ProcessTimeoutError,
)

logger = logging.getLogger(__name__)


class LoginError(Exception):
    """Raised when ``levo login`` does not succeed; the main command is never attempted."""

    def __init__(self, message: str, exit_code: int | None = None) -> None:
        super().__init__(message)
        self.exit_code = exit_code


class CleanupWarning(UserWarning):
    """Non-fatal failure while removing run credentials or transient files."""


@dataclass
class CredentialSession:
    """Mutable record of what one run created and what its cleanup reported."""

    credentials: LevoCredentials
    environment_file: Path | None = None
    logged_in: bool = False
    cleanup_runs: int = 0
    warnings: list[CleanupWarning] = field(default_factory=list)


class CredentialLifecycleManager:
    """Sequence login and guaranteed cleanup of Levo CLI credentials for one workspace."""

    def __init__(
        self, workspace: WorkspaceState, builder: CommandBuilder, launcher: Launcher
    ) -> None:
        self._workspace = workspace
        self._builder = builder
        self._launcher = launcher

    @contextmanager
    def session(self, credentials: LevoCredentials) -> Iterator[CredentialSession]:
        """Log in for the duration of the ``with`` block and always clean up afterwards."""
        session = CredentialSession(credentials=credentials)
        session.warnings.extend(self.purge_credential_store())
        try:
            self.refresh_image()
            self.login(session)
            yield session
        finally:
            self.cleanup(session)

    def purge_credential_store(self) -> list[CleanupWarning]:
        try:
            failures = self._workspace.purge_credential_store()
        except OSError as exc:
            failures = [(self._workspace.credential_store_dir, exc)]
        warnings = [CleanupWarning(f"Could not delete {path}: {error}") for path, error in failures]
        for warning in warnings:
            logger.warning("%s", warning)
        return warnings

    def refresh_image(self) -> None:
        """Pull the pinned image; a failed pull falls back to the locally cached image."""
        invocation = self._builder.pull_command()
        try:
            result = self._launcher.run(invocation)
        except ProcessTimeoutError as exc:
            logger.warning("%s; continuing with the cached image.", exc)
            return
        if not result.succeeded:
            logger.warning(
                "Image pull exited with code %d; continuing with the cached image.",
                result.exit_code,
            )

    def login(self, session: CredentialSession) -> None:
        credentials = session.credentials
        logger.info(
            "Logging in to Levo (organization=%s, key=%s)",
            credentials.organization_id,
            credentials.masked_key,
        )
        invocation = self._builder.login_command(credentials)
        try:
            result = self._launcher.run(invocation)
        except ProcessTimeoutError as exc:
            raise LoginError(f"Levo login failed: {exc}") from exc
        if not result.succeeded:
            raise LoginError(
                f"Levo login failed with exit code {result.exit_code}.", result.exit_code
            )
        session.logged_in = True

    def materialize_environment(self, session: CredentialSession, environment: str) -> bool:
        """Write the secret environment file for this run; False when it could not be written.

        The file is recorded on the session before writing so that cleanup also
        removes a partially written copy.
        """
        session.environment_file = self._workspace.environment_file
        try:
            self._workspace.write_environment_file(environment)
        except OSError as exc:
            logger.warning("Could not write %s: %s", self._workspace.environment_file, exc)
            return False
        return True

    def cleanup(self, session: CredentialSession) -> list[CleanupWarning]:
        session.cleanup_runs += 1
        warnings: list[CleanupWarning] = []
        if session.environment_file is not None:
            try:
                self._workspace.remove_environment_file()
            except OSError as exc:
                warnings.append(
                    CleanupWarning(f"Could not delete {session.environment_file}: {exc}")
                )
            session.environment_file = None
        warnings.extend(self._logout(session.credentials))
        for warning in warnings:
            logger.warning("%s", warning)
        warnings.extend(self.purge_credential_store())
        session.warnings.extend(warnings)
        return warnings

    def _logout(self, credentials: LevoCredentials) -> list[CleanupWarning]:
        try:
            result = self._launcher.run(self._builder.logout_command(credentials))
        except (ProcessLaunchError, ProcessTimeoutError, HostProbeError, OSError) as exc:
            return [CleanupWarning(f"Levo logout failed: {exc}")]
        if not result.succeeded:
            return [CleanupWarning(f"Levo logout exited with code {result.exit_code}.")]
        return []
