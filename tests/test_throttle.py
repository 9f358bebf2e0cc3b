from __future__ import annotations

import asyncio

import pytest

from fx_radar.rates.throttle import RequestThrottle


class _Ticker:
    def __init__(self) -> None:
        self.value = 1000.0

    def __call__(self) -> float:
        return self.value


def _throttle(max_calls: int = 2) -> tuple[RequestThrottle, _Ticker, list[float]]:
    ticker = _Ticker()
    sleeps: list[float] = []

    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    throttle = RequestThrottle(max_calls, 60.0, 2.0, clock=ticker, sleep=_sleep)
    return throttle, ticker, sleeps


def test_under_budget_does_not_wait() -> None:
    throttle, _, sleeps = _throttle()
    throttle.record("USD_EUR")
    throttle.record("USD_EUR")

    assert asyncio.run(throttle.wait_if_needed("USD_EUR")) == 0.0
    assert sleeps == []


def test_exactly_max_calls_does_not_wait() -> None:
    throttle, _, sleeps = _throttle(max_calls=10)
    for _ in range(10):
        throttle.record("USD_EUR")

    assert asyncio.run(throttle.wait_if_needed("USD_EUR")) == 0.0
    assert sleeps == []

    throttle.record("USD_EUR")
    assert asyncio.run(throttle.wait_if_needed("USD_EUR")) == 2.0
    assert sleeps == [2.0]


def test_cooldown_applies_once_budget_is_exceeded() -> None:
    throttle, ticker, sleeps = _throttle()
    throttle.record("USD_EUR")
    throttle.record("USD_EUR")
    throttle.record("USD_EUR")

    assert asyncio.run(throttle.wait_if_needed("USD_EUR")) == 2.0
    assert sleeps == [2.0]
    # Other pairs have their own budget.
    assert asyncio.run(throttle.wait_if_needed("USD_GBP")) == 0.0

    ticker.value += 61
    assert throttle.recent_calls("USD_EUR") == 0
    assert asyncio.run(throttle.wait_if_needed("USD_EUR")) == 0.0
    assert sleeps == [2.0]


def test_history_size_and_reset() -> None:
    throttle, _, _ = _throttle()
    throttle.record("USD_EUR")
    throttle.record("USD_GBP")
    throttle.record("USD_GBP")
    assert throttle.history_size() == 3

    throttle.reset("USD_GBP")
    assert throttle.history_size() == 1
    throttle.reset()
    assert throttle.history_size() == 0


def test_lock_is_shared_per_pair() -> None:
    throttle, _, _ = _throttle()
    assert throttle.lock_for("USD_EUR") is throttle.lock_for("USD_EUR")
    assert throttle.lock_for("USD_EUR") is not throttle.lock_for("EUR_USD")


def test_max_calls_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RequestThrottle(0)
