"""Sliding-window throttle for card and profile reads.

Provides SlidingWindowBucket, an in-memory pyrate_limiter bucket that keeps
every call timestamp inside the window, and RateLimiter, the awaitable
throttle the pipeline calls before each read.

For any window of ``rate.interval`` milliseconds the number of recorded
calls never exceeds ``rate.limit``. When the window is full, the caller is
suspended until the oldest call in it expires.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from pyrate_limiter import AbstractBucket, Duration, Rate, RateItem

logger = logging.getLogger(__name__)


class SlidingWindowBucket(AbstractBucket):
    """In-memory sliding-window bucket for pyrate_limiter.

    Items are kept in timestamp order. An item belongs to the window while
    ``now - item.timestamp < interval``.

    Example:
        bucket = SlidingWindowBucket([Rate(20, Duration.MINUTE)])
        wait_ms = bucket.waiting(RateItem("card", now_ms))
    """

    def __init__(self, rates: list[Rate]) -> None:
        self.rates = rates
        self._items: list[RateItem] = []

    def put(self, item: RateItem) -> bool:
        """Record an item. Admission is decided by waiting(), not here."""
        self._items.append(item)
        return True

    def leak(self, current_timestamp: int | None = None) -> int:
        """Drop items older than the longest rate interval.

        Args:
            current_timestamp: Current timestamp in milliseconds. If None,
                uses the wall clock.

        Returns:
            Number of items removed.
        """
        if current_timestamp is None:
            current_timestamp = int(time.time() * 1000)

        max_interval = max(rate.interval for rate in self.rates)
        cutoff = current_timestamp - max_interval

        kept = [item for item in self._items if item.timestamp > cutoff]
        removed = len(self._items) - len(kept)
        self._items = kept
        return removed

    def flush(self) -> None:
        self._items.clear()

    def count(self) -> int:
        return sum(item.weight for item in self._items)

    def peek(self, index: int) -> RateItem | None:
        """Get an item by index, newest first."""
        if index < 0 or index >= len(self._items):
            return None
        return self._items[-1 - index]

    def waiting(self, item: RateItem) -> int:
        """Calculate how long ``item`` must wait before it can be recorded.

        Checks every rate and returns the largest wait.

        Returns:
            Wait time in milliseconds (0 if no wait needed).
        """
        current_timestamp = item.timestamp
        max_wait = 0

        for rate in self.rates:
            window_start = current_timestamp - rate.interval
            in_window = [
                i for i in self._items if i.timestamp > window_start
            ]
            current_count = sum(i.weight for i in in_window)

            if current_count + item.weight > rate.limit:
                oldest_timestamp = in_window[0].timestamp
                wait_time = oldest_timestamp + rate.interval - current_timestamp
                max_wait = max(max_wait, wait_time)

        return max(0, max_wait)


class RateLimiter:
    """Awaitable sliding-window throttle.

    Each RateLimiter owns its own bucket; the card reader and the profile
    fetcher use separate instances so their budgets never interact.

    Args:
        max_calls: Maximum number of calls per window.
        interval: Window length in milliseconds (default: one minute).
        name: Label recorded on each rate item and used in log messages.
        clock: Returns the current time in seconds.
        sleep: Awaitable sleep taking seconds.

    Example:
        limiter = RateLimiter(max_calls=20)
        for card in cards:
            await limiter.throttle()
            read(card)
    """

    def __init__(
        self,
        max_calls: int = 20,
        interval: int | Duration = Duration.MINUTE,
        name: str = "card",
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        self.name = name
        self.rate = Rate(max_calls, interval)
        self._bucket = SlidingWindowBucket([self.rate])
        self._clock = clock
        self._sleep = sleep

    def _now_ms(self) -> int:
        return int(round(self._clock() * 1000))

    @property
    def recorded_calls(self) -> int:
        """Number of calls currently inside the window."""
        self._bucket.leak(self._now_ms())
        return self._bucket.count()

    async def throttle(self) -> float:
        """Wait until one more call fits in the window, then record it.

        The current time is recorded on every call, including the first.

        Returns:
            Seconds spent waiting (0.0 if the call was admitted at once).
        """
        now = self._now_ms()
        self._bucket.leak(now)
        wait_ms = self._bucket.waiting(RateItem(self.name, now))

        if wait_ms > 0:
            logger.info(
                f"Rate limit reached for {self.name} "
                f"({self.rate.limit} per {self.rate.interval} ms), "
                f"waiting {wait_ms / 1000:.2f}s"
            )
            await self._sleep(wait_ms / 1000)

        self._bucket.put(RateItem(self.name, self._now_ms()))
        return wait_ms / 1000

    def reset(self) -> None:
        """Forget every recorded call."""
        self._bucket.flush()
