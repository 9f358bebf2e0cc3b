"""Exchange-rate resolution: providers, caching, throttling and retries."""

from fx_radar.rates.cache import CacheStats, CacheSweeper, CacheTier, RateCache
from fx_radar.rates.credentials import (
    CredentialLookup,
    EnvCredentialLookup,
    StaticCredentialLookup,
    validate_credential_format,
)
from fx_radar.rates.models import ProviderDescriptor, RateRecord, pair_key
from fx_radar.rates.orchestrator import ProviderOrchestrator
from fx_radar.rates.providers import DEFAULT_PROVIDERS, HttpRateProvider, RateProvider, build_providers
from fx_radar.rates.retry import RetryPolicy, retry_with_backoff
from fx_radar.rates.throttle import RequestThrottle

__all__ = [
    "CacheStats",
    "CacheSweeper",
    "CacheTier",
    "CredentialLookup",
    "DEFAULT_PROVIDERS",
    "EnvCredentialLookup",
    "HttpRateProvider",
    "ProviderDescriptor",
    "ProviderOrchestrator",
    "RateCache",
    "RateProvider",
    "RateRecord",
    "RequestThrottle",
    "RetryPolicy",
    "StaticCredentialLookup",
    "build_providers",
    "pair_key",
    "retry_with_backoff",
    "validate_credential_format",
]
