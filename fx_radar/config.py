"""Runtime settings, optionally read from ``FX_RADAR_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping, Optional

from fx_radar.errors import InvalidInput

ENV_PREFIX = "FX_RADAR_"


def _split_names(raw: str) -> tuple[str, ...]:
    return tuple(name.strip().upper() for name in raw.split(",") if name.strip())


_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "base_currency": ("BASE_CURRENCY", str),
    "confidence_threshold": ("CONFIDENCE_THRESHOLD", float),
    "context_radius": ("CONTEXT_RADIUS", int),
    "fresh_ttl_seconds": ("FRESH_TTL", float),
    "offline_ttl_seconds": ("OFFLINE_TTL", float),
    "max_cache_entries": ("MAX_CACHE_ENTRIES", int),
    "max_retries": ("MAX_RETRIES", int),
    "retry_delay": ("RETRY_DELAY", float),
    "throttle_max_calls": ("THROTTLE_MAX_CALLS", int),
    "throttle_window_seconds": ("THROTTLE_WINDOW", float),
    "throttle_cooldown_seconds": ("THROTTLE_COOLDOWN", float),
    "cascade_timeout": ("CASCADE_TIMEOUT", float),
    "request_timeout": ("REQUEST_TIMEOUT", float),
    "sweep_interval_seconds": ("SWEEP_INTERVAL", float),
    "storage_url": ("STORAGE_URL", str),
    "enabled_providers": ("PROVIDERS", _split_names),
}


@dataclass(slots=True)
class FxRadarSettings:
    """Tunable knobs for detection, caching, throttling and retries.

    Credentials are deliberately absent; they come from a credential lookup.
    """

    base_currency: str = "USD"
    confidence_threshold: float = 0.7
    context_radius: int = 50
    fresh_ttl_seconds: float = 900.0
    offline_ttl_seconds: float = 86400.0
    max_cache_entries: int = 1000
    max_retries: int = 3
    retry_delay: float = 1.0
    throttle_max_calls: int = 10
    throttle_window_seconds: float = 60.0
    throttle_cooldown_seconds: float = 2.0
    cascade_timeout: Optional[float] = None
    request_timeout: float = 10.0
    sweep_interval_seconds: float = 300.0
    storage_url: Optional[str] = None
    enabled_providers: Optional[tuple[str, ...]] = None

    def __post_init__(self) -> None:
        self.base_currency = self.base_currency.strip().upper()
        if len(self.base_currency) != 3 or not self.base_currency.isalpha():
            raise InvalidInput(f"base_currency must be a 3-letter code, got {self.base_currency!r}")
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise InvalidInput("confidence_threshold must be between 0 and 1")
        if self.context_radius < 0:
            raise InvalidInput("context_radius must not be negative")
        if self.fresh_ttl_seconds <= 0 or self.offline_ttl_seconds <= 0:
            raise InvalidInput("cache TTLs must be positive")
        if self.offline_ttl_seconds < self.fresh_ttl_seconds:
            raise InvalidInput("offline_ttl_seconds must be at least fresh_ttl_seconds")
        for name in ("max_cache_entries", "max_retries", "throttle_max_calls"):
            if getattr(self, name) < 1:
                raise InvalidInput(f"{name} must be at least 1")
        for name in ("retry_delay", "throttle_cooldown_seconds"):
            if getattr(self, name) < 0:
                raise InvalidInput(f"{name} must not be negative")
        for name in ("throttle_window_seconds", "request_timeout", "sweep_interval_seconds"):
            if getattr(self, name) <= 0:
                raise InvalidInput(f"{name} must be positive")
        if self.cascade_timeout is not None and self.cascade_timeout <= 0:
            raise InvalidInput("cascade_timeout must be positive when set")
        if self.enabled_providers is not None:
            self.enabled_providers = tuple(name.upper() for name in self.enabled_providers)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "FxRadarSettings":
        """Build settings from ``FX_RADAR_*`` variables; keyword overrides win."""

        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name, (suffix, convert) in _ENV_FIELDS.items():
            raw = env.get(ENV_PREFIX + suffix)
            if raw is None or not raw.strip():
                continue
            try:
                values[name] = convert(raw.strip())
            except ValueError as exc:
                raise InvalidInput(f"Invalid value for {ENV_PREFIX}{suffix}: {raw!r}") from exc
        values.update(overrides)
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {field_info.name: getattr(self, field_info.name) for field_info in fields(self)}


__all__ = ["ENV_PREFIX", "FxRadarSettings"]
