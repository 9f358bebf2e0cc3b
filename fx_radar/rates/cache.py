"""Two-tier exchange-rate cache with LRU bounds and persistence hooks."""

from __future__ import annotations

import asyncio
import json
from collections import OrderedDict
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping

from fx_radar.errors import CacheCorrupt
from fx_radar.rates.models import RateRecord, utcnow
from fx_radar.utils.logger import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from fx_radar.storage import KeyValueStore

LOGGER = get_logger(__name__)

STORAGE_KEY = "fx_radar.rate_cache"
SNAPSHOT_VERSION = 1
DEFAULT_FRESH_TTL = timedelta(minutes=15)
DEFAULT_OFFLINE_TTL = timedelta(hours=24)
DEFAULT_MAX_ENTRIES = 1000


class CacheTier(str, Enum):
    FRESH = "fresh"
    OFFLINE = "offline"


@dataclass(slots=True)
class CacheStats:
    """Counters describing cache effectiveness."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    fresh_size: int = 0
    offline_size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["hit_rate"] = round(self.hit_rate, 4)
        return payload


class RateCache:
    """Fresh (short TTL) and offline (long TTL) rate tiers keyed by currency pair.

    Each tier is an independent LRU map bounded by ``max_entries``. Writing to
    the fresh tier also refreshes the offline tier, so the offline copy of a
    pair never expires before its fresh copy. Expired entries are purged when
    read and by :meth:`evict_expired`.
    """

    def __init__(
        self,
        *,
        fresh_ttl: timedelta = DEFAULT_FRESH_TTL,
        offline_ttl: timedelta = DEFAULT_OFFLINE_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.fresh_ttl = fresh_ttl
        self.offline_ttl = offline_ttl
        self.max_entries = max_entries
        self._clock = clock
        self._tiers: dict[CacheTier, OrderedDict[str, RateRecord]] = {
            CacheTier.FRESH: OrderedDict(),
            CacheTier.OFFLINE: OrderedDict(),
        }
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def now(self) -> datetime:
        return self._clock()

    def get(self, pair: str, tier: CacheTier = CacheTier.FRESH) -> RateRecord | None:
        entries = self._tiers[tier]
        record = entries.get(pair)
        if record is None:
            self._misses += 1
            LOGGER.debug("Cache miss for %s (%s)", pair, tier.value)
            return None
        if record.is_expired(self.now()):
            del entries[pair]
            self._misses += 1
            LOGGER.debug("Cache entry for %s (%s) expired", pair, tier.value)
            return None
        entries.move_to_end(pair)
        self._hits += 1
        LOGGER.debug("Cache hit for %s (%s)", pair, tier.value)
        return record

    def put(self, pair: str, record: RateRecord, tier: CacheTier = CacheTier.FRESH) -> None:
        self._store(tier, pair, record)
        if tier is CacheTier.FRESH:
            offline_expiry = max(record.fetched_at + self.offline_ttl, record.expires_at)
            self._store(CacheTier.OFFLINE, pair, replace(record, expires_at=offline_expiry))

    def _store(self, tier: CacheTier, pair: str, record: RateRecord) -> None:
        entries = self._tiers[tier]
        entries[pair] = record
        entries.move_to_end(pair)
        while len(entries) > self.max_entries:
            evicted, _ = entries.popitem(last=False)
            self._evictions += 1
            LOGGER.debug("Evicted least recently used %s entry %s", tier.value, evicted)

    def evict_expired(self) -> int:
        """Drop expired entries from both tiers and return how many were removed."""

        now = self.now()
        removed = 0
        for entries in self._tiers.values():
            for pair in [pair for pair, record in entries.items() if record.is_expired(now)]:
                del entries[pair]
                removed += 1
        if removed:
            LOGGER.info("Evicted %s expired rate cache entries", removed)
        return removed

    def clear(self, include_offline: bool = True) -> None:
        self._tiers[CacheTier.FRESH].clear()
        if include_offline:
            self._tiers[CacheTier.OFFLINE].clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            fresh_size=len(self._tiers[CacheTier.FRESH]),
            offline_size=len(self._tiers[CacheTier.OFFLINE]),
        )

    def __len__(self) -> int:
        return len(self._tiers[CacheTier.FRESH])

    def snapshot_for_persistence(self) -> dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            **{
                tier.value: {pair: record.to_dict() for pair, record in entries.items()}
                for tier, entries in self._tiers.items()
            },
        }

    def restore_from_persistence(self, blob: Mapping[str, Any] | str | None) -> int:
        """Load a snapshot, skipping expired entries.

        A malformed blob is logged and leaves the cache empty. Returns the
        number of entries restored.
        """

        if blob is None:
            return 0
        try:
            decoded = _decode_snapshot(blob)
        except CacheCorrupt as exc:
            LOGGER.warning("Discarding corrupt rate cache snapshot: %s", exc)
            self.clear()
            return 0

        self.clear()
        now = self.now()
        restored = 0
        for tier, records in decoded.items():
            for pair, record in records.items():
                if record.is_expired(now):
                    continue
                self._store(tier, pair, record)
                restored += 1
        LOGGER.info("Restored %s rate cache entries", restored)
        return restored

    async def save(self, store: "KeyValueStore") -> None:
        await store.set({STORAGE_KEY: self.snapshot_for_persistence()})
        LOGGER.info("Persisted rate cache (%s fresh entries)", len(self))

    async def load(self, store: "KeyValueStore") -> int:
        stored = await store.get([STORAGE_KEY])
        return self.restore_from_persistence(stored.get(STORAGE_KEY))


def _decode_snapshot(blob: Mapping[str, Any] | str) -> dict[CacheTier, dict[str, RateRecord]]:
    if isinstance(blob, str):
        try:
            blob = json.loads(blob)
        except json.JSONDecodeError as exc:
            raise CacheCorrupt(f"snapshot is not valid JSON: {exc}") from exc
    if not isinstance(blob, Mapping):
        raise CacheCorrupt(f"snapshot must be an object, got {type(blob).__name__}")
    if blob.get("version") != SNAPSHOT_VERSION:
        raise CacheCorrupt(f"unsupported snapshot version {blob.get('version')!r}")

    decoded: dict[CacheTier, dict[str, RateRecord]] = {}
    for tier in CacheTier:
        entries = blob.get(tier.value, {})
        if not isinstance(entries, Mapping):
            raise CacheCorrupt(f"{tier.value} tier must be an object")
        records: dict[str, RateRecord] = {}
        for pair, payload in entries.items():
            try:
                records[str(pair)] = RateRecord.from_dict(payload)
            except (KeyError, TypeError, ValueError, ArithmeticError) as exc:
                raise CacheCorrupt(f"invalid {tier.value} entry for {pair}: {exc}") from exc
        decoded[tier] = records
    return decoded


class CacheSweeper:
    """Periodically purge expired entries (and optionally persist) on the event loop."""

    def __init__(
        self,
        cache: RateCache,
        interval: float = 300.0,
        *,
        store: "KeyValueStore | None" = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.cache = cache
        self.interval = interval
        self.store = store
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> int:
        removed = self.cache.evict_expired()
        if self.store is not None:
            await self.cache.save(self.store)
        return removed

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            try:
                await self.run_once()
            except Exception as exc:  # pragma: no cover - storage dependent
                LOGGER.warning("Rate cache sweep failed: %s", exc)

    def start(self) -> asyncio.Task[None]:
        """Schedule the sweep loop on the running event loop."""

        if not self.running:
            self._task = asyncio.get_running_loop().create_task(self._run())
        assert self._task is not None
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


__all__ = [
    "STORAGE_KEY",
    "CacheTier",
    "CacheStats",
    "RateCache",
    "CacheSweeper",
]
