"""Resolve exchange rates across prioritized providers with caching and fallbacks."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, Optional, Sequence

from fx_radar.errors import AllProvidersExhausted, InvalidInput, ProviderRejected
from fx_radar.rates.cache import CacheTier, RateCache
from fx_radar.rates.credentials import validate_credential_format
from fx_radar.rates.models import RateRecord, pair_key
from fx_radar.rates.providers import HttpRateProvider, RateProvider
from fx_radar.rates.retry import RetryPolicy, retry_with_backoff
from fx_radar.rates.throttle import RequestThrottle
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)

CHECK_PAIR = ("USD", "EUR")


def normalize_currency(code: str) -> str:
    if not isinstance(code, str) or not code.strip():
        raise InvalidInput("Currency code is required")
    return code.strip().upper()


def describe_error(exc: BaseException) -> str:
    return getattr(exc, "message", None) or str(exc) or type(exc).__name__


class ProviderOrchestrator:
    """Fetch a rate for a currency pair, degrading gracefully when providers fail.

    A call resolves in this order:

    1. identical currencies short-circuit to a synthetic rate of 1;
    2. a fresh cache entry is returned as is;
    3. the pair's throttle may impose a cooldown;
    4. providers are tried by ascending priority, each with retries for
       transient errors; a rejection moves on to the next provider at once;
    5. the offline cache tier is used when every provider failed;
    6. otherwise :class:`AllProvidersExhausted` is raised.

    Calls for the same pair are serialized so concurrent callers share one
    fetch. Cache writes happen only after a fetch completed, so a cancelled
    call never leaves a partial record behind.
    """

    def __init__(
        self,
        providers: Sequence[RateProvider],
        *,
        cache: Optional[RateCache] = None,
        throttle: Optional[RequestThrottle] = None,
        retry_policy: Optional[RetryPolicy] = None,
        cascade_timeout: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.providers: list[RateProvider] = sorted(providers, key=lambda provider: provider.priority)
        self.cache = cache if cache is not None else RateCache()
        self.throttle = throttle if throttle is not None else RequestThrottle()
        self.retry_policy = retry_policy if retry_policy is not None else RetryPolicy()
        self.cascade_timeout = cascade_timeout
        self._sleep = sleep
        self.total_retries = 0
        self.last_retry_count = 0

    async def get_rate(self, from_currency: str, to_currency: str) -> RateRecord:
        source = normalize_currency(from_currency)
        target = normalize_currency(to_currency)
        if source == target:
            return RateRecord.identity(source, now=self.cache.now())

        pair = pair_key(source, target)
        async with self.throttle.lock_for(pair):
            cached = self.cache.get(pair, CacheTier.FRESH)
            if cached is not None:
                return cached.with_flags(cached=True)

            await self.throttle.wait_if_needed(pair)

            failures: dict[str, str] = {}
            timed_out = False
            record: Optional[RateRecord] = None
            try:
                if self.cascade_timeout is None:
                    record = await self._cascade(pair, source, target, failures)
                else:
                    record = await asyncio.wait_for(
                        self._cascade(pair, source, target, failures), self.cascade_timeout
                    )
            except asyncio.TimeoutError:
                timed_out = True
                LOGGER.warning(
                    "Provider cascade for %s timed out after %ss", pair, self.cascade_timeout
                )

            if record is not None:
                return record

            offline = self.cache.get(pair, CacheTier.OFFLINE)
            if offline is not None:
                LOGGER.warning(
                    "All providers failed for %s; serving offline rate from %s", pair, offline.source
                )
                return offline.with_flags(cached=True, offline=True)

            raise AllProvidersExhausted(source, target, failures, timed_out=timed_out)

    async def _cascade(
        self, pair: str, source: str, target: str, failures: dict[str, str]
    ) -> Optional[RateRecord]:
        retries = 0

        def _count_retry(attempt: int, exc: BaseException, delay: float) -> None:
            nonlocal retries
            retries += 1
            self.total_retries += 1

        try:
            for provider in self.providers:

                async def _attempt(provider: RateProvider = provider) -> RateRecord:
                    self.throttle.record(pair)
                    return await provider.fetch_rate(source, target)

                try:
                    fetched = await retry_with_backoff(
                        _attempt,
                        self.retry_policy,
                        sleep=self._sleep,
                        on_retry=_count_retry,
                        label=f"{provider.name} {pair}",
                    )
                except ProviderRejected as exc:
                    failures[provider.name] = exc.message
                    LOGGER.warning("%s rejected %s: %s", provider.name, pair, exc.message)
                    continue
                except Exception as exc:
                    failures[provider.name] = describe_error(exc)
                    LOGGER.warning("%s failed for %s: %s", provider.name, pair, exc)
                    continue

                record = fetched.with_ttl(self.cache.fresh_ttl).with_flags(cached=False, offline=False)
                self.cache.put(pair, record, CacheTier.FRESH)
                return record
            return None
        finally:
            self.last_retry_count = retries

    async def test_provider(self, name: str) -> dict[str, Any]:
        """Check a single provider with a USD to EUR lookup, bypassing cache and retries."""

        provider = next((p for p in self.providers if p.name == name.upper()), None)
        if provider is None:
            raise InvalidInput(f"Unknown rate provider: {name}")

        report: dict[str, Any] = {"provider": provider.name, "priority": provider.priority}
        if isinstance(provider, HttpRateProvider) and provider.descriptor.requires_credential:
            credential = provider.credentials.get_credential(provider.name)
            report["credential_configured"] = bool(credential)
            report["credential_format_valid"] = validate_credential_format(provider.name, credential)

        started = time.perf_counter()
        try:
            record = await provider.fetch_rate(*CHECK_PAIR)
        except Exception as exc:
            report.update(success=False, error=describe_error(exc))
        else:
            report.update(success=True, rate=str(record.rate))
        report["elapsed_ms"] = round((time.perf_counter() - started) * 1000, 1)
        return report

    def stats(self) -> dict[str, Any]:
        return {
            "cache": self.cache.stats().to_dict(),
            "request_history": self.throttle.history_size(),
            "retry_policy": self.retry_policy.describe(),
            "total_retries": self.total_retries,
            "providers": [provider.name for provider in self.providers],
        }


__all__ = ["ProviderOrchestrator", "normalize_currency"]
