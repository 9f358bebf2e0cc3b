from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
import requests

from fx_radar.errors import ProviderRejected, ProviderUnavailable
from fx_radar.rates.credentials import StaticCredentialLookup
from fx_radar.rates.providers import (
    AlphaVantageProvider,
    CurrencyApiProvider,
    ExchangeRateApiProvider,
    FixerProvider,
    FrankfurterProvider,
    build_providers,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
KEYS = StaticCredentialLookup(
    {
        "EXCHANGERATE_API": "er-key",
        "FIXER_IO": "fixer-key",
        "CURRENCY_API": "capi-key",
        "ALPHA_VANTAGE": "av-key",
    }
)


class _DummyResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, reason: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    def json(self) -> Any:
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class _DummySession:
    def __init__(self, response: _DummyResponse | Exception) -> None:
        self.response = response
        self.calls: list[tuple[str, dict[str, str], float]] = []

    def get(self, url: str, params: dict[str, str] | None = None, timeout: float | None = None):
        self.calls.append((url, dict(params or {}), timeout))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _provider(cls, response, credentials=KEYS):
    session = _DummySession(response)
    return cls(credentials=credentials, session=session, timeout=5.0, clock=lambda: NOW), session


def _fetch(provider, source: str = "USD", target: str = "EUR"):
    return asyncio.run(provider.fetch_rate(source, target))


def test_frankfurter_success_builds_record() -> None:
    provider, session = _provider(FrankfurterProvider, _DummyResponse(payload={"rates": {"EUR": 0.92}}))

    record = _fetch(provider)

    assert record.rate == Decimal("0.92")
    assert record.source == "FRANKFURTER"
    assert record.fetched_at == NOW
    assert record.expires_at == NOW
    assert session.calls == [
        ("https://api.frankfurter.dev/v1/latest", {"base": "USD", "symbols": "EUR"}, 5.0)
    ]


def test_keyed_provider_without_credential_is_rejected() -> None:
    provider, session = _provider(
        ExchangeRateApiProvider, _DummyResponse(payload={}), credentials=StaticCredentialLookup()
    )

    with pytest.raises(ProviderRejected, match="API key not configured"):
        _fetch(provider)
    assert session.calls == []


def test_exchangerate_api_success_and_errors() -> None:
    payload = {"result": "success", "conversion_rates": {"EUR": 0.91}}
    provider, session = _provider(ExchangeRateApiProvider, _DummyResponse(payload=payload))
    assert _fetch(provider).rate == Decimal("0.91")
    assert session.calls[0][0] == "https://v6.exchangerate-api.com/v6/er-key/latest/USD"

    rejected, _ = _provider(
        ExchangeRateApiProvider, _DummyResponse(payload={"result": "error", "error-type": "invalid-key"})
    )
    with pytest.raises(ProviderRejected):
        _fetch(rejected)

    quota, _ = _provider(
        ExchangeRateApiProvider, _DummyResponse(payload={"result": "error", "error-type": "quota-reached"})
    )
    with pytest.raises(ProviderUnavailable):
        _fetch(quota)


def test_fixer_error_codes() -> None:
    provider, session = _provider(
        FixerProvider, _DummyResponse(payload={"success": True, "rates": {"EUR": "0.9"}})
    )
    assert _fetch(provider).rate == Decimal("0.9")
    assert session.calls[0][1] == {"access_key": "fixer-key", "base": "USD", "symbols": "EUR"}

    for code, error in ((101, ProviderRejected), (105, ProviderRejected), (104, ProviderUnavailable)):
        failing, _ = _provider(
            FixerProvider,
            _DummyResponse(payload={"success": False, "error": {"code": code, "info": "nope"}}),
        )
        with pytest.raises(error):
            _fetch(failing)


def test_currency_api_reads_nested_value() -> None:
    provider, _ = _provider(
        CurrencyApiProvider, _DummyResponse(payload={"data": {"EUR": {"code": "EUR", "value": 0.93}}})
    )
    assert _fetch(provider).rate == Decimal("0.93")


def test_alpha_vantage_payloads() -> None:
    payload = {"Realtime Currency Exchange Rate": {"5. Exchange Rate": "0.92110000"}}
    provider, _ = _provider(AlphaVantageProvider, _DummyResponse(payload=payload))
    assert _fetch(provider).rate == Decimal("0.92110000")

    throttled, _ = _provider(AlphaVantageProvider, _DummyResponse(payload={"Note": "5 calls per minute"}))
    with pytest.raises(ProviderUnavailable):
        _fetch(throttled)

    invalid, _ = _provider(AlphaVantageProvider, _DummyResponse(payload={"Error Message": "Invalid API call"}))
    with pytest.raises(ProviderRejected):
        _fetch(invalid)


@pytest.mark.parametrize(
    ("status", "error"),
    [
        (401, ProviderRejected),
        (403, ProviderRejected),
        (404, ProviderRejected),
        (429, ProviderUnavailable),
        (500, ProviderUnavailable),
        (503, ProviderUnavailable),
    ],
)
def test_http_status_classification(status: int, error: type[Exception]) -> None:
    provider, _ = _provider(FrankfurterProvider, _DummyResponse(status_code=status, reason="Oops"))
    with pytest.raises(error, match=f"HTTP {status}"):
        _fetch(provider)


@pytest.mark.parametrize(
    "failure", [requests.ConnectionError("refused"), requests.Timeout("slow"), requests.RequestException()]
)
def test_network_errors_are_transient(failure: Exception) -> None:
    provider, _ = _provider(FrankfurterProvider, failure)
    with pytest.raises(ProviderUnavailable):
        _fetch(provider)


@pytest.mark.parametrize(
    ("payload", "error"),
    [
        (ValueError("no json"), ProviderUnavailable),
        (["not", "a", "mapping"], ProviderUnavailable),
        ({"rates": {}}, ProviderRejected),
        ({"rates": {"EUR": "abc"}}, ProviderUnavailable),
        ({"rates": {"EUR": -1}}, ProviderUnavailable),
    ],
)
def test_bad_payloads(payload: Any, error: type[Exception]) -> None:
    provider, _ = _provider(FrankfurterProvider, _DummyResponse(payload=payload))
    with pytest.raises(error):
        _fetch(provider)


def test_build_providers_orders_by_priority() -> None:
    session = _DummySession(_DummyResponse(payload={}))
    providers = build_providers(credentials=KEYS, session=session)
    assert [p.name for p in providers] == [
        "EXCHANGERATE_API",
        "FIXER_IO",
        "CURRENCY_API",
        "ALPHA_VANTAGE",
        "FRANKFURTER",
    ]
    assert all(p.session is session for p in providers)

    selected = build_providers(names=["frankfurter", "fixer_io"], session=session)
    assert [p.name for p in selected] == ["FIXER_IO", "FRANKFURTER"]

    with pytest.raises(ValueError, match="NOPE"):
        build_providers(names=["nope"], session=session)
