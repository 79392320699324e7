"""Credential domain exports."""

from .credential_models import DEFAULT_LEVO_BASE_URL, LevoCredentials, mask_secret
from .credential_store import (
    CredentialNotFound,
    CredentialResolutionError,
    CredentialResolver,
    CredentialStore,
    EnvironmentNotFound,
    ResolvedCredentials,
    YamlCredentialStore,
)

__all__ = [
    "DEFAULT_LEVO_BASE_URL",
    "LevoCredentials",
    "mask_secret",
    "CredentialNotFound",
    "CredentialResolutionError",
    "CredentialResolver",
    "CredentialStore",
    "EnvironmentNotFound",
    "ResolvedCredentials",
    "YamlCredentialStore",
]
