"""Per-pair request history, call throttling and same-pair serialization."""

from __future__ import annotations

import asyncio
import time
from collections import defaultdict, deque
from typing import Awaitable, Callable, Deque, Dict

from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)


class RequestThrottle:
    """Sliding-window throttle keyed by currency pair.

    Every provider attempt is recorded for its pair. When more than
    ``max_calls`` attempts for a pair fall inside the last ``window_seconds``,
    the next caller sleeps for ``cooldown_seconds`` before going to the
    network. A per-pair :class:`asyncio.Lock` lets callers serialize work on
    the same pair.
    """

    def __init__(
        self,
        max_calls: int = 10,
        window_seconds: float = 60.0,
        cooldown_seconds: float = 2.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_calls < 1:
            raise ValueError("max_calls must be positive")
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._sleep = sleep
        self._history: Dict[str, Deque[float]] = defaultdict(deque)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def lock_for(self, pair: str) -> asyncio.Lock:
        return self._locks[pair]

    def _prune(self, pair: str) -> Deque[float]:
        cutoff = self._clock() - self.window_seconds
        history = self._history[pair]
        while history and history[0] <= cutoff:
            history.popleft()
        return history

    def record(self, pair: str) -> None:
        self._history[pair].append(self._clock())

    def recent_calls(self, pair: str) -> int:
        return len(self._prune(pair))

    async def wait_if_needed(self, pair: str) -> float:
        """Sleep for the cooldown when ``pair`` is over its budget; return seconds waited."""

        recent = self.recent_calls(pair)
        if recent <= self.max_calls:
            return 0.0
        LOGGER.warning(
            "Throttling %s: %s requests in the last %ss, cooling down for %ss",
            pair,
            recent,
            self.window_seconds,
            self.cooldown_seconds,
        )
        await self._sleep(self.cooldown_seconds)
        return self.cooldown_seconds

    def history_size(self) -> int:
        return sum(len(self._prune(pair)) for pair in list(self._history))

    def reset(self, pair: str | None = None) -> None:
        if pair is None:
            self._history.clear()
        else:
            self._history.pop(pair, None)


__all__ = ["RequestThrottle"]
