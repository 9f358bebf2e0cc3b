from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import pytest

from fx_radar.errors import AllProvidersExhausted, InvalidInput, ProviderRejected, ProviderUnavailable
from fx_radar.rates.cache import RateCache
from fx_radar.rates.credentials import StaticCredentialLookup
from fx_radar.rates.models import ProviderDescriptor, RateRecord
from fx_radar.rates.orchestrator import ProviderOrchestrator, normalize_currency
from fx_radar.rates.providers import ExchangeRateApiProvider, RateProvider
from fx_radar.rates.retry import RetryPolicy
from fx_radar.rates.throttle import RequestThrottle

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class _Clock:
    def __init__(self) -> None:
        self.now = T0

    def __call__(self) -> datetime:
        return self.now


class _ScriptedProvider(RateProvider):
    """Replays outcomes in order; the last one repeats forever."""

    def __init__(self, name: str, priority: int, *outcomes: Any, clock=None, delay: float = 0.0) -> None:
        self.descriptor = ProviderDescriptor(
            name=name, priority=priority, requires_credential=False, base_endpoint="memory://"
        )
        self.outcomes = list(outcomes)
        self.calls = 0
        self.clock = clock or (lambda: T0)
        self.delay = delay

    async def fetch_rate(self, from_currency: str, to_currency: str) -> RateRecord:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        now = self.clock()
        return RateRecord(from_currency, to_currency, Decimal(str(outcome)), self.name, now, now)


class _Harness:
    def __init__(self, *providers: RateProvider, cascade_timeout: float | None = None, max_calls: int = 10) -> None:
        self.clock = _Clock()
        self.retry_sleeps: list[float] = []
        self.throttle_sleeps: list[float] = []

        async def _retry_sleep(seconds: float) -> None:
            self.retry_sleeps.append(seconds)

        async def _throttle_sleep(seconds: float) -> None:
            self.throttle_sleeps.append(seconds)

        self.cache = RateCache(clock=self.clock)
        self.orchestrator = ProviderOrchestrator(
            providers,
            cache=self.cache,
            throttle=RequestThrottle(max_calls, 60.0, 2.0, sleep=_throttle_sleep),
            retry_policy=RetryPolicy(max_retries=3, base_delay=1.0),
            cascade_timeout=cascade_timeout,
            sleep=_retry_sleep,
        )

    def get_rate(self, source: str = "USD", target: str = "EUR") -> RateRecord:
        return asyncio.run(self.orchestrator.get_rate(source, target))


def _unavailable(name: str = "PRIMARY") -> ProviderUnavailable:
    return ProviderUnavailable(name, "timeout")


def test_same_currency_short_circuits() -> None:
    provider = _ScriptedProvider("PRIMARY", 1, "0.92")
    harness = _Harness(provider)

    record = harness.get_rate("usd", " USD ")

    assert record.rate == Decimal(1)
    assert record.source == "same-currency"
    assert provider.calls == 0


def test_injected_collaborators_are_kept_even_when_empty() -> None:
    cache = RateCache(fresh_ttl=timedelta(seconds=5))
    throttle = RequestThrottle()
    policy = RetryPolicy(max_retries=1)
    orchestrator = ProviderOrchestrator(
        [_ScriptedProvider("PRIMARY", 1, "0.92")], cache=cache, throttle=throttle, retry_policy=policy
    )

    assert len(cache) == 0
    assert orchestrator.cache is cache
    assert orchestrator.throttle is throttle
    assert orchestrator.retry_policy is policy

    record = asyncio.run(orchestrator.get_rate("USD", "EUR"))

    assert record.expires_at - record.fetched_at == timedelta(seconds=5)
    assert cache.get("USD_EUR") is not None


def test_currency_codes_are_required() -> None:
    harness = _Harness(_ScriptedProvider("PRIMARY", 1, "0.92"))
    with pytest.raises(InvalidInput):
        harness.get_rate("", "EUR")
    assert normalize_currency(" eur ") == "EUR"


def test_transient_failures_are_retried_then_cached() -> None:
    provider = _ScriptedProvider("PRIMARY", 1, _unavailable(), _unavailable(), "0.92")
    harness = _Harness(provider)

    record = harness.get_rate()

    assert record.rate == Decimal("0.92")
    assert record.cached is False
    assert record.expires_at == T0 + timedelta(minutes=15)
    assert provider.calls == 3
    assert harness.orchestrator.last_retry_count == 2
    assert harness.retry_sleeps == [1.0, 2.0]

    again = harness.get_rate()
    assert again.cached is True
    assert again.rate == record.rate
    assert provider.calls == 3


def test_rejection_moves_to_next_provider_without_retry() -> None:
    primary = _ScriptedProvider("PRIMARY", 1, ProviderRejected("PRIMARY", "invalid key"))
    backup = _ScriptedProvider("BACKUP", 2, "0.93")
    harness = _Harness(backup, primary)

    record = harness.get_rate()

    assert record.source == "BACKUP"
    assert primary.calls == 1
    assert backup.calls == 1
    assert harness.orchestrator.last_retry_count == 0


def test_all_providers_failing_raises_with_failures() -> None:
    primary = _ScriptedProvider("PRIMARY", 1, _unavailable())
    backup = _ScriptedProvider("BACKUP", 2, ProviderRejected("BACKUP", "unsupported pair"))
    harness = _Harness(primary, backup)

    with pytest.raises(AllProvidersExhausted) as excinfo:
        harness.get_rate()

    assert excinfo.value.failures == {"PRIMARY": "timeout", "BACKUP": "unsupported pair"}
    assert excinfo.value.timed_out is False
    assert primary.calls == 3
    assert backup.calls == 1


def test_offline_tier_serves_stale_rate_when_providers_fail() -> None:
    harness = _Harness()
    provider = _ScriptedProvider("PRIMARY", 1, "0.92", _unavailable(), clock=harness.clock)
    harness.orchestrator.providers = [provider]

    harness.get_rate()
    harness.clock.now = T0 + timedelta(minutes=30)

    stale = harness.get_rate()
    assert stale.rate == Decimal("0.92")
    assert stale.cached is True
    assert stale.offline is True
    assert stale.source == "PRIMARY"

    harness.clock.now = T0 + timedelta(hours=25)
    with pytest.raises(AllProvidersExhausted):
        harness.get_rate()


def test_cascade_timeout_falls_back() -> None:
    slow = _ScriptedProvider("SLOW", 1, "0.92", delay=1.0)
    harness = _Harness(slow, cascade_timeout=0.05)

    with pytest.raises(AllProvidersExhausted) as excinfo:
        harness.get_rate()
    assert excinfo.value.timed_out is True
    assert len(harness.cache) == 0


def test_concurrent_calls_for_same_pair_share_one_fetch() -> None:
    provider = _ScriptedProvider("PRIMARY", 1, "0.92", delay=0.01)
    harness = _Harness(provider)

    async def scenario() -> list[RateRecord]:
        return await asyncio.gather(
            harness.orchestrator.get_rate("USD", "EUR"),
            harness.orchestrator.get_rate("USD", "EUR"),
        )

    first, second = asyncio.run(scenario())

    assert provider.calls == 1
    assert sorted([first.cached, second.cached]) == [False, True]


def test_throttle_cooldown_before_network_call() -> None:
    provider = _ScriptedProvider("PRIMARY", 1, "0.92")
    harness = _Harness(provider, max_calls=1)

    harness.get_rate()
    harness.cache.clear()
    harness.get_rate()
    assert harness.throttle_sleeps == []

    harness.cache.clear()
    harness.get_rate()

    assert harness.throttle_sleeps == [2.0]
    assert provider.calls == 3


def test_provider_check_reports_success_and_failure() -> None:
    ok = _ScriptedProvider("OK", 1, "0.92")
    broken = _ScriptedProvider("BROKEN", 2, _unavailable("BROKEN"))
    harness = _Harness(ok, broken)

    report = asyncio.run(harness.orchestrator.test_provider("ok"))
    assert report["success"] is True
    assert report["rate"] == "0.92"
    assert "credential_configured" not in report

    failed = asyncio.run(harness.orchestrator.test_provider("BROKEN"))
    assert failed["success"] is False
    assert failed["error"] == "timeout"
    assert broken.calls == 1

    with pytest.raises(InvalidInput):
        asyncio.run(harness.orchestrator.test_provider("missing"))


def test_provider_check_validates_credential_shape() -> None:
    provider = ExchangeRateApiProvider(credentials=StaticCredentialLookup({"EXCHANGERATE_API": "short"}))

    async def _fake_fetch(source: str, target: str) -> RateRecord:
        return RateRecord(source, target, Decimal("0.9"), provider.name, T0, T0)

    provider.fetch_rate = _fake_fetch  # type: ignore[method-assign]
    harness = _Harness(provider)

    report = asyncio.run(harness.orchestrator.test_provider("EXCHANGERATE_API"))

    assert report["credential_configured"] is True
    assert report["credential_format_valid"] is False
    assert report["success"] is True


def test_stats_summarise_cache_and_retries() -> None:
    provider = _ScriptedProvider("PRIMARY", 1, _unavailable(), "0.92")
    harness = _Harness(provider)
    harness.get_rate()

    stats = harness.orchestrator.stats()

    assert stats["providers"] == ["PRIMARY"]
    assert stats["total_retries"] == 1
    assert stats["request_history"] == 2
    assert stats["retry_policy"] == {"max_retries": 3, "base_delay": 1.0}
    assert stats["cache"]["fresh_size"] == 1
