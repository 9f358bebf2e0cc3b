"""Retry policy and an async retry-with-backoff combinator built on tenacity."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from fx_radar.errors import ProviderRejected
from fx_radar.utils.logger import get_logger

LOGGER = get_logger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Default retry predicate: everything except a rejection or cancellation is retried."""

    return isinstance(exc, Exception) and not isinstance(exc, ProviderRejected)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """How many attempts to make and how long to back off between them.

    ``max_retries`` is the total number of attempts per call; the wait before
    attempt ``n + 1`` is ``base_delay * 2 ** (n - 1)`` seconds.
    """

    max_retries: int = 3
    base_delay: float = 1.0
    is_retryable: Callable[[BaseException], bool] = field(default=is_transient)

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * 2 ** (attempt - 1)

    def describe(self) -> dict[str, float]:
        return {"max_retries": self.max_retries, "base_delay": self.base_delay}


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
    label: str = "operation",
) -> T:
    """Await ``operation`` until it succeeds, fails permanently or runs out of attempts.

    Errors rejected by ``policy.is_retryable`` propagate immediately. When the
    attempts are exhausted, the last error propagates unchanged.
    ``on_retry(attempt, error, delay)`` is called before every backoff sleep.
    """

    def _before_sleep(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        delay = state.next_action.sleep if state.next_action else 0.0
        LOGGER.warning(
            "%s failed on attempt %s/%s: %s; retrying in %.2fs",
            label,
            state.attempt_number,
            policy.max_retries,
            exc,
            delay,
        )
        if on_retry is not None and exc is not None:
            on_retry(state.attempt_number, exc, delay)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_retries),
        wait=wait_exponential(multiplier=policy.base_delay, min=0),
        retry=retry_if_exception(policy.is_retryable),
        before_sleep=_before_sleep,
        sleep=sleep,
        reraise=True,
    )
    async for attempt in retrying:
        with attempt:
            return await operation()
    raise AssertionError("unreachable")  # pragma: no cover


__all__ = ["RetryPolicy", "retry_with_backoff", "is_transient"]
