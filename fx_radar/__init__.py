"""Public interface for the fx_radar package."""

from __future__ import annotations

from datetime import timedelta
from importlib import metadata as importlib_metadata
from typing import Optional, Sequence, Union

import requests

from fx_radar.config import FxRadarSettings
from fx_radar.conversion import AmountLike, ConversionEngine, ConversionResult
from fx_radar.detection import AnnotatedMention, CurrencyMention, MentionDetector
from fx_radar.errors import (
    AllProvidersExhausted,
    CacheCorrupt,
    FxRadarError,
    InvalidInput,
    ParseAmbiguous,
    ProviderRejected,
    ProviderUnavailable,
)
from fx_radar.rates import (
    CacheSweeper,
    CredentialLookup,
    EnvCredentialLookup,
    ProviderOrchestrator,
    RateCache,
    RateProvider,
    RateRecord,
    RequestThrottle,
    RetryPolicy,
    build_providers,
)
from fx_radar.storage import KeyValueStore, open_store
from fx_radar.utils.logger import get_logger

__all__ = [
    "__version__",
    "FxRadar",
    "FxRadarSettings",
    "FxRadarError",
    "InvalidInput",
    "ParseAmbiguous",
    "ProviderUnavailable",
    "ProviderRejected",
    "AllProvidersExhausted",
    "CacheCorrupt",
]

try:
    __version__ = importlib_metadata.version("fx-radar")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"

LOGGER = get_logger(__name__)


class FxRadar:
    """Detect currency mentions in text and convert them at live rates.

    Parameters
    ----------
    settings:
        Runtime configuration; defaults to :meth:`FxRadarSettings.from_env`.
    store:
        Durable key-value store for the rate cache. When omitted, the store is
        opened from ``settings.storage_url`` (in-memory when unset).
    credentials:
        Credential lookup for providers that need an API key.
    providers:
        Explicit provider instances; built from the settings otherwise.
    session:
        ``requests.Session`` shared by the default HTTP providers.
    """

    def __init__(
        self,
        settings: Optional[FxRadarSettings] = None,
        *,
        store: Optional[KeyValueStore] = None,
        credentials: Optional[CredentialLookup] = None,
        providers: Optional[Sequence[RateProvider]] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings or FxRadarSettings.from_env()
        if store is None:
            store = open_store(self.settings.storage_url)
        self.store: KeyValueStore = store
        self.detector = MentionDetector(
            confidence_threshold=self.settings.confidence_threshold,
            base_currency=self.settings.base_currency,
            context_radius=self.settings.context_radius,
        )
        self.cache = RateCache(
            fresh_ttl=timedelta(seconds=self.settings.fresh_ttl_seconds),
            offline_ttl=timedelta(seconds=self.settings.offline_ttl_seconds),
            max_entries=self.settings.max_cache_entries,
        )
        if providers is None:
            providers = build_providers(
                credentials=credentials or EnvCredentialLookup(),
                session=session,
                timeout=self.settings.request_timeout,
                names=self.settings.enabled_providers,
            )
        self.orchestrator = ProviderOrchestrator(
            providers,
            cache=self.cache,
            throttle=RequestThrottle(
                self.settings.throttle_max_calls,
                self.settings.throttle_window_seconds,
                self.settings.throttle_cooldown_seconds,
            ),
            retry_policy=RetryPolicy(
                max_retries=self.settings.max_retries, base_delay=self.settings.retry_delay
            ),
            cascade_timeout=self.settings.cascade_timeout,
        )
        self.engine = ConversionEngine(self.orchestrator)
        self._sweeper: Optional[CacheSweeper] = None

    def detect(self, text: str) -> list[CurrencyMention]:
        return self.detector.detect(text)

    def best_mention(self, text: str) -> Optional[AnnotatedMention]:
        return self.detector.best(text)

    async def get_rate(self, from_currency: str, to_currency: str) -> RateRecord:
        return await self.orchestrator.get_rate(from_currency, to_currency)

    async def convert(
        self, amount: AmountLike, from_currency: str, to_currency: str
    ) -> ConversionResult:
        return await self.engine.convert(amount, from_currency, to_currency)

    async def convert_text(
        self, text: str, targets: Sequence[str]
    ) -> tuple[Optional[AnnotatedMention], list[Union[ConversionResult, FxRadarError]]]:
        """Detect the best mention in ``text`` and convert it into every target."""

        best = self.detector.best(text)
        if best is None:
            LOGGER.info("No currency mention found in text")
            return None, []
        results = await self.engine.convert_many(
            best.mention.amount, best.mention.currency_code, targets
        )
        return best, results

    async def load_cache(self) -> int:
        return await self.cache.load(self.store)

    async def save_cache(self) -> None:
        await self.cache.save(self.store)

    def start_sweeper(self) -> CacheSweeper:
        """Start periodic cache expiry (and persistence) on the running event loop."""

        if self._sweeper is None:
            self._sweeper = CacheSweeper(
                self.cache, self.settings.sweep_interval_seconds, store=self.store
            )
        self._sweeper.start()
        return self._sweeper

    async def aclose(self) -> None:
        if self._sweeper is not None:
            await self._sweeper.stop()
            self._sweeper = None
        await self.save_cache()
        await self.store.close()

    async def __aenter__(self) -> "FxRadar":
        await self.load_cache()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
