"""Credential lookup collaborators for rate providers.

fx_radar never stores API keys; providers ask a lookup for them on every call.
"""

from __future__ import annotations

import os
import re
from typing import Mapping, Optional, Protocol, runtime_checkable

ENV_TEMPLATE = "FX_RADAR_{name}_API_KEY"

_FORMAT_RULES: dict[str, re.Pattern[str]] = {
    "FIXER_IO": re.compile(r"^[a-fA-F0-9]{32}$"),
    "CURRENCY_API": re.compile(r"^[a-zA-Z0-9]{40}$"),
    "ALPHA_VANTAGE": re.compile(r"^[A-Z0-9]{16}$"),
}
_GENERIC_MIN_LENGTH = 16


@runtime_checkable
class CredentialLookup(Protocol):
    def get_credential(self, provider_name: str) -> Optional[str]:
        ...


class EnvCredentialLookup:
    """Read ``FX_RADAR_<PROVIDER>_API_KEY`` from the environment."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def get_credential(self, provider_name: str) -> Optional[str]:
        value = self._environ.get(ENV_TEMPLATE.format(name=provider_name.upper()))
        if not value or not value.strip():
            return None
        return value.strip()


class StaticCredentialLookup:
    """Serve credentials from an in-memory mapping keyed by provider name."""

    def __init__(self, credentials: Optional[Mapping[str, str]] = None) -> None:
        self._credentials = {name.upper(): key for name, key in (credentials or {}).items()}

    def get_credential(self, provider_name: str) -> Optional[str]:
        return self._credentials.get(provider_name.upper())


def validate_credential_format(provider_name: str, credential: Optional[str]) -> bool:
    """Check that ``credential`` has the shape the provider issues keys in."""

    if not credential or not isinstance(credential, str):
        return False
    rule = _FORMAT_RULES.get(provider_name.upper())
    if rule is None:
        return len(credential) >= _GENERIC_MIN_LENGTH
    return bool(rule.match(credential))


__all__ = [
    "CredentialLookup",
    "EnvCredentialLookup",
    "StaticCredentialLookup",
    "validate_credential_format",
]
