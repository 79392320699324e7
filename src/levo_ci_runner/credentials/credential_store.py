"""Credential lookup and resolution services."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import yaml

from .credential_models import LevoCredentials

logger = logging.getLogger(__name__)

LEVO_CLI_TYPE = "levo_cli"
SECRET_TEXT_TYPE = "secret_text"
SECRET_FILE_TYPE = "secret_file"


class CredentialResolutionError(Exception):
    """Raised when a credential id cannot be resolved or read."""


class CredentialNotFound(CredentialResolutionError):
    """Raised when the Levo CLI credential id is unknown."""


class EnvironmentNotFound(CredentialResolutionError):
    """Raised when the secret environment id matches neither a secret text nor a secret file."""


class CredentialStore(Protocol):
    """Opaque lookup-by-id credential backend."""

    def find_levo_credentials(self, credential_id: str) -> LevoCredentials | None: ...

    def find_secret_text(self, credential_id: str) -> str | None: ...

    def find_secret_file(self, credential_id: str) -> bytes | None: ...


@dataclass(frozen=True)
class ResolvedCredentials:
    """Credentials and optional environment-file payload for one run."""

    levo: LevoCredentials
    environment: str | None = None


class CredentialResolver:  # pylint: disable=too-few-public-methods
    """Resolve build-step credential ids against a credential store."""

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    def resolve(
        self, credentials_id: str, secret_environment_id: str | None = None
    ) -> ResolvedCredentials:
        levo = self._store.find_levo_credentials(credentials_id)
        if levo is None:
            raise CredentialNotFound(f"Levo credentials not found: {credentials_id}")
        logger.info(
            "Resolved Levo credentials '%s' (organization=%s, key=%s, base_url=%s)",
            credentials_id,
            levo.organization_id,
            levo.masked_key,
            levo.base_url,
        )
        environment = None
        if secret_environment_id is not None:
            environment = self._resolve_environment(secret_environment_id)
        return ResolvedCredentials(levo=levo, environment=environment)

    def _resolve_environment(self, secret_environment_id: str) -> str:
        text = self._store.find_secret_text(secret_environment_id)
        if text is not None:
            return text
        content = self._store.find_secret_file(secret_environment_id)
        if content is None:
            raise EnvironmentNotFound(
                f"Defined secret environment not found: {secret_environment_id}"
            )
        try:
            decoded = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CredentialResolutionError(
                f"Secret environment file '{secret_environment_id}' is not valid UTF-8."
            ) from exc
        return "\n".join(decoded.splitlines())


class YamlCredentialStore:
    """Credential store backed by a YAML mapping of id to credential entry.

    Entries look like::

        levo-ci:
          type: levo_cli
          organization_id: "..."
          authorization_key: "..."
          base_url: "https://api.levo.ai"
        staging-environment:
          type: secret_file
          path: secrets/environment.yaml
    """

    def __init__(self, entries: Mapping[str, Mapping[str, Any]], *, base_path: Path) -> None:
        self._entries = entries
        self._base_path = base_path

    @classmethod
    def from_file(cls, store_path: Path | str) -> YamlCredentialStore:
        path = Path(store_path)
        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise CredentialResolutionError(f"Cannot read credentials file {path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise CredentialResolutionError(
                f"Failed to parse credentials file {path}: {exc}"
            ) from exc
        if parsed is None:
            parsed = {}
        if isinstance(parsed, Mapping) and "credentials" in parsed:
            parsed = parsed["credentials"] or {}
        if not isinstance(parsed, Mapping):
            raise CredentialResolutionError("Credentials file root must be a mapping.")
        return cls(parsed, base_path=path.resolve().parent)

    def find_levo_credentials(self, credential_id: str) -> LevoCredentials | None:
        entry = self._entry(credential_id, LEVO_CLI_TYPE)
        if entry is None:
            return None
        organization_id = _entry_text(entry, "organization_id", credential_id)
        authorization_key = _entry_text(entry, "authorization_key", credential_id)
        base_url = entry.get("base_url")
        return LevoCredentials.create(
            organization_id,
            authorization_key,
            base_url if isinstance(base_url, str) else None,
        )

    def find_secret_text(self, credential_id: str) -> str | None:
        entry = self._entry(credential_id, SECRET_TEXT_TYPE)
        if entry is None:
            return None
        secret = entry.get("secret")
        if not isinstance(secret, str):
            raise CredentialResolutionError(f"Credential '{credential_id}' has no secret text.")
        return secret

    def find_secret_file(self, credential_id: str) -> bytes | None:
        entry = self._entry(credential_id, SECRET_FILE_TYPE)
        if entry is None:
            return None
        content = entry.get("content")
        if isinstance(content, str):
            return content.encode("utf-8")
        raw_path = _entry_text(entry, "path", credential_id)
        secret_path = Path(raw_path)
        if not secret_path.is_absolute():
            secret_path = self._base_path / secret_path
        try:
            return secret_path.read_bytes()
        except OSError as exc:
            raise CredentialResolutionError(
                f"Cannot read secret file for credential '{credential_id}': {exc}"
            ) from exc

    def _entry(self, credential_id: str, credential_type: str) -> Mapping[str, Any] | None:
        entry = self._entries.get(credential_id)
        if not isinstance(entry, Mapping):
            return None
        if entry.get("type", LEVO_CLI_TYPE) != credential_type:
            return None
        return entry


def _entry_text(entry: Mapping[str, Any], key: str, credential_id: str) -> str:
    value = entry.get(key)
    if not isinstance(value, str) or not value.strip():
        raise CredentialResolutionError(f"Credential '{credential_id}' is missing {key}.")
    return value.strip()
