"""Exception hierarchy shared by detection, rate resolution and conversion."""

from __future__ import annotations

from typing import Mapping


class FxRadarError(Exception):
    """Base class for every error raised by fx_radar."""


class InvalidInput(FxRadarError, ValueError):
    """Bad amount, currency code or setting. Fails fast and is never retried."""


class ParseAmbiguous(FxRadarError, ValueError):
    """A numeric substring could not be resolved to a single decimal value."""

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"Cannot parse {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason


class ProviderError(FxRadarError):
    """Failure reported by a single rate provider."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class ProviderUnavailable(ProviderError):
    """Transient provider failure (network, timeout, 429/5xx, quota)."""


class ProviderRejected(ProviderError):
    """Credential, authorization or unsupported-pair failure. Not retried."""


class AllProvidersExhausted(FxRadarError):
    """Every provider failed and no usable offline rate exists."""

    def __init__(
        self,
        from_currency: str,
        to_currency: str,
        failures: Mapping[str, str] | None = None,
        *,
        timed_out: bool = False,
    ) -> None:
        self.from_currency = from_currency
        self.to_currency = to_currency
        self.failures: dict[str, str] = dict(failures or {})
        self.timed_out = timed_out
        tried = ", ".join(self.failures) or "none"
        suffix = " (timed out)" if timed_out else ""
        super().__init__(
            f"No exchange rate available for {from_currency} -> {to_currency}; "
            f"providers tried: {tried}{suffix}"
        )


class CacheCorrupt(FxRadarError, ValueError):
    """A persisted cache blob could not be decoded."""


__all__ = [
    "FxRadarError",
    "InvalidInput",
    "ParseAmbiguous",
    "ProviderError",
    "ProviderUnavailable",
    "ProviderRejected",
    "AllProvidersExhausted",
    "CacheCorrupt",
]
