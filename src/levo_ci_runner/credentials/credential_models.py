"""Credential domain entities."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_LEVO_BASE_URL = "https://api.levo.ai"

_MASK_EDGE = 3


def mask_secret(secret: str) -> str:
    """Render a secret for diagnostics: ``ABC...HIJ`` for long keys, ``***`` otherwise."""
    if len(secret) > 2 * _MASK_EDGE:
        return f"{secret[:_MASK_EDGE]}...{secret[-_MASK_EDGE:]}"
    return "***"


@dataclass(frozen=True)
class LevoCredentials:
    """Organization and authorization key used to log the Levo CLI in."""

    organization_id: str
    authorization_key: str = field(repr=False)
    base_url: str = DEFAULT_LEVO_BASE_URL

    @staticmethod
    def create(
        organization_id: str, authorization_key: str, base_url: str | None = None
    ) -> LevoCredentials:
        resolved_base_url = base_url.strip() if base_url else ""
        return LevoCredentials(
            organization_id=organization_id,
            authorization_key=authorization_key,
            base_url=resolved_base_url or DEFAULT_LEVO_BASE_URL,
        )

    @property
    def masked_key(self) -> str:
        return mask_secret(self.authorization_key)
