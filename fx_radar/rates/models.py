"""Data structures for exchange-rate records and provider configuration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Mapping

SAME_CURRENCY_SOURCE = "same-currency"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def pair_key(from_currency: str, to_currency: str) -> str:
    """Cache and history key for a currency pair, e.g. ``USD_EUR``."""

    return f"{from_currency.upper()}_{to_currency.upper()}"


@dataclass(frozen=True, slots=True)
class RateRecord:
    """A single exchange rate with its provenance and validity window."""

    from_currency: str
    to_currency: str
    rate: Decimal
    source: str
    fetched_at: datetime
    expires_at: datetime
    cached: bool = False
    offline: bool = False

    @property
    def pair(self) -> str:
        return pair_key(self.from_currency, self.to_currency)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def with_flags(self, *, cached: bool | None = None, offline: bool | None = None) -> "RateRecord":
        return replace(
            self,
            cached=self.cached if cached is None else cached,
            offline=self.offline if offline is None else offline,
        )

    def with_ttl(self, ttl: timedelta) -> "RateRecord":
        return replace(self, expires_at=self.fetched_at + ttl)

    @classmethod
    def identity(cls, currency: str, now: datetime | None = None) -> "RateRecord":
        """Synthetic rate of 1 for converting a currency into itself."""

        moment = now or utcnow()
        return cls(
            from_currency=currency,
            to_currency=currency,
            rate=Decimal(1),
            source=SAME_CURRENCY_SOURCE,
            fetched_at=moment,
            expires_at=moment,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "from_currency": self.from_currency,
            "to_currency": self.to_currency,
            "rate": str(self.rate),
            "source": self.source,
            "fetched_at": self.fetched_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RateRecord":
        """Rebuild a record from :meth:`to_dict` output (raises on malformed input)."""

        return cls(
            from_currency=str(payload["from_currency"]),
            to_currency=str(payload["to_currency"]),
            rate=Decimal(str(payload["rate"])),
            source=str(payload["source"]),
            fetched_at=_parse_timestamp(payload["fetched_at"]),
            expires_at=_parse_timestamp(payload["expires_at"]),
        )


def _parse_timestamp(value: Any) -> datetime:
    parsed = datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True, slots=True)
class ProviderDescriptor:
    """Static configuration of one rate provider."""

    name: str
    priority: int
    requires_credential: bool
    base_endpoint: str
    description: str = ""


__all__ = [
    "SAME_CURRENCY_SOURCE",
    "RateRecord",
    "ProviderDescriptor",
    "pair_key",
    "utcnow",
]
