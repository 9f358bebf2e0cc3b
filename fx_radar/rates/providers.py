"""Exchange-rate providers: one class per upstream HTTP API."""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, ClassVar, Iterable, Mapping, Optional, Sequence

import requests

from fx_radar.errors import ProviderRejected, ProviderUnavailable
from fx_radar.rates.credentials import CredentialLookup, EnvCredentialLookup
from fx_radar.rates.models import ProviderDescriptor, RateRecord, utcnow
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "fx-radar/0.1 (+https://pypi.org/project/fx-radar/)"


def default_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    return session


class RateProvider(ABC):
    """Anything that can fetch a single exchange rate."""

    descriptor: ProviderDescriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def priority(self) -> int:
        return self.descriptor.priority

    @abstractmethod
    async def fetch_rate(self, from_currency: str, to_currency: str) -> RateRecord:
        """Return the current rate or raise a :class:`ProviderError` subclass."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"


class HttpRateProvider(RateProvider):
    """Base class for JSON-over-HTTP providers using a shared ``requests`` session.

    Requests run on a worker thread so the event loop is never blocked.
    Subclasses describe how to build the request and how to read the payload.
    """

    descriptor: ClassVar[ProviderDescriptor]

    def __init__(
        self,
        *,
        credentials: Optional[CredentialLookup] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.credentials = credentials or EnvCredentialLookup()
        self.timeout = timeout
        self._clock = clock
        self._session = session

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = default_session()
        return self._session

    def _credential(self) -> Optional[str]:
        if not self.descriptor.requires_credential:
            return None
        credential = self.credentials.get_credential(self.name)
        if not credential:
            raise ProviderRejected(self.name, "API key not configured")
        return credential

    @abstractmethod
    def build_request(
        self, from_currency: str, to_currency: str, credential: Optional[str]
    ) -> tuple[str, dict[str, str]]:
        """Return the URL and query parameters for a rate lookup."""

    @abstractmethod
    def extract_rate(self, payload: Mapping[str, Any], from_currency: str, to_currency: str) -> Any:
        """Pull the raw rate out of a decoded response or raise a provider error."""

    async def fetch_rate(self, from_currency: str, to_currency: str) -> RateRecord:
        credential = self._credential()
        url, params = self.build_request(from_currency, to_currency, credential)
        payload = await asyncio.to_thread(self._get_json, url, params)
        raw_rate = self.extract_rate(payload, from_currency, to_currency)
        rate = self._to_decimal(raw_rate, from_currency, to_currency)
        now = self._clock()
        LOGGER.info("%s returned %s -> %s = %s", self.name, from_currency, to_currency, rate)
        return RateRecord(
            from_currency=from_currency,
            to_currency=to_currency,
            rate=rate,
            source=self.name,
            fetched_at=now,
            expires_at=now,
        )

    def _get_json(self, url: str, params: Mapping[str, str]) -> Mapping[str, Any]:
        try:
            response = self.session.get(url, params=dict(params), timeout=self.timeout)
        except (requests.Timeout, requests.ConnectionError) as exc:
            raise ProviderUnavailable(self.name, f"network error: {exc.__class__.__name__}") from exc
        except requests.RequestException as exc:
            raise ProviderUnavailable(self.name, f"request failed: {exc.__class__.__name__}") from exc
        self._raise_with_context(response)
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderUnavailable(self.name, "response was not valid JSON") from exc
        if not isinstance(payload, Mapping):
            raise ProviderUnavailable(self.name, "unexpected response shape")
        return payload

    def _raise_with_context(self, response: requests.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        reason = getattr(response, "reason", "") or ""
        message = f"HTTP {status} {reason}".strip()
        if status in {401, 403}:
            raise ProviderRejected(self.name, f"{message} (check the API key)")
        if status == 429 or status >= 500:
            raise ProviderUnavailable(self.name, message)
        raise ProviderRejected(self.name, message)

    def _to_decimal(self, value: Any, from_currency: str, to_currency: str) -> Decimal:
        if value is None:
            raise ProviderRejected(self.name, f"rate not available for {from_currency} -> {to_currency}")
        try:
            rate = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ProviderUnavailable(self.name, f"malformed rate {value!r}") from exc
        if not rate.is_finite() or rate <= 0:
            raise ProviderUnavailable(self.name, f"malformed rate {value!r}")
        return rate


class ExchangeRateApiProvider(HttpRateProvider):
    descriptor = ProviderDescriptor(
        name="EXCHANGERATE_API",
        priority=1,
        requires_credential=True,
        base_endpoint="https://v6.exchangerate-api.com/v6",
        description="ExchangeRate-API",
    )
    _REJECTED = {"invalid-key", "inactive-account", "unsupported-code", "malformed-request"}

    def build_request(self, from_currency, to_currency, credential):
        return f"{self.descriptor.base_endpoint}/{credential}/latest/{from_currency}", {}

    def extract_rate(self, payload, from_currency, to_currency):
        if payload.get("result") == "error":
            error_type = str(payload.get("error-type", "unknown"))
            if error_type in self._REJECTED:
                raise ProviderRejected(self.name, f"API error: {error_type}")
            raise ProviderUnavailable(self.name, f"API error: {error_type}")
        return (payload.get("conversion_rates") or {}).get(to_currency)


class FixerProvider(HttpRateProvider):
    descriptor = ProviderDescriptor(
        name="FIXER_IO",
        priority=2,
        requires_credential=True,
        base_endpoint="http://data.fixer.io/api/latest",
        description="Fixer.io",
    )
    # 101 missing/invalid key, 102 inactive account, 105 plan restriction,
    # 201 invalid base, 202 invalid symbols.
    _REJECTED_CODES = {101, 102, 105, 201, 202}

    def build_request(self, from_currency, to_currency, credential):
        params = {"access_key": credential or "", "base": from_currency, "symbols": to_currency}
        return self.descriptor.base_endpoint, params

    def extract_rate(self, payload, from_currency, to_currency):
        if not payload.get("success", False):
            error = payload.get("error") or {}
            code = error.get("code")
            info = error.get("info") or error.get("type") or "Fixer.io API error"
            if code in self._REJECTED_CODES:
                raise ProviderRejected(self.name, f"error {code}: {info}")
            raise ProviderUnavailable(self.name, f"error {code}: {info}")
        return (payload.get("rates") or {}).get(to_currency)


class CurrencyApiProvider(HttpRateProvider):
    descriptor = ProviderDescriptor(
        name="CURRENCY_API",
        priority=3,
        requires_credential=True,
        base_endpoint="https://api.currencyapi.com/v3/latest",
        description="CurrencyAPI",
    )

    def build_request(self, from_currency, to_currency, credential):
        params = {"apikey": credential or "", "base_currency": from_currency, "currencies": to_currency}
        return self.descriptor.base_endpoint, params

    def extract_rate(self, payload, from_currency, to_currency):
        entry = (payload.get("data") or {}).get(to_currency)
        return entry.get("value") if isinstance(entry, Mapping) else None


class AlphaVantageProvider(HttpRateProvider):
    descriptor = ProviderDescriptor(
        name="ALPHA_VANTAGE",
        priority=4,
        requires_credential=True,
        base_endpoint="https://www.alphavantage.co/query",
        description="Alpha Vantage",
    )

    def build_request(self, from_currency, to_currency, credential):
        params = {
            "function": "CURRENCY_EXCHANGE_RATE",
            "from_currency": from_currency,
            "to_currency": to_currency,
            "apikey": credential or "",
        }
        return self.descriptor.base_endpoint, params

    def extract_rate(self, payload, from_currency, to_currency):
        if payload.get("Error Message"):
            raise ProviderRejected(self.name, str(payload["Error Message"]))
        # Alpha Vantage reports throttling as a 200 with a "Note" or "Information" field.
        notice = payload.get("Note") or payload.get("Information")
        if notice:
            raise ProviderUnavailable(self.name, str(notice))
        exchange = payload.get("Realtime Currency Exchange Rate") or {}
        return exchange.get("5. Exchange Rate")


class FrankfurterProvider(HttpRateProvider):
    descriptor = ProviderDescriptor(
        name="FRANKFURTER",
        priority=5,
        requires_credential=False,
        base_endpoint="https://api.frankfurter.dev/v1/latest",
        description="Frankfurter (ECB reference rates)",
    )

    def build_request(self, from_currency, to_currency, credential):
        return self.descriptor.base_endpoint, {"base": from_currency, "symbols": to_currency}

    def extract_rate(self, payload, from_currency, to_currency):
        return (payload.get("rates") or {}).get(to_currency)


DEFAULT_PROVIDERS: tuple[type[HttpRateProvider], ...] = (
    ExchangeRateApiProvider,
    FixerProvider,
    CurrencyApiProvider,
    AlphaVantageProvider,
    FrankfurterProvider,
)


def build_providers(
    *,
    credentials: Optional[CredentialLookup] = None,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    names: Optional[Iterable[str]] = None,
    provider_classes: Sequence[type[HttpRateProvider]] = DEFAULT_PROVIDERS,
) -> list[HttpRateProvider]:
    """Instantiate the configured providers in ascending priority order."""

    by_name = {cls.descriptor.name: cls for cls in provider_classes}
    if names is None:
        selected = list(provider_classes)
    else:
        wanted = [name.strip().upper() for name in names if name.strip()]
        unknown = [name for name in wanted if name not in by_name]
        if unknown:
            raise ValueError(f"Unknown rate provider(s): {', '.join(unknown)}")
        selected = [by_name[name] for name in wanted]
    shared_session = session or default_session()
    providers = [
        cls(credentials=credentials, session=shared_session, timeout=timeout) for cls in selected
    ]
    return sorted(providers, key=lambda provider: provider.priority)


__all__ = [
    "RateProvider",
    "HttpRateProvider",
    "ExchangeRateApiProvider",
    "FixerProvider",
    "CurrencyApiProvider",
    "AlphaVantageProvider",
    "FrankfurterProvider",
    "DEFAULT_PROVIDERS",
    "build_providers",
    "default_session",
]
