"""Outbound request throttling.

A reservation based limiter with a burst of one: every caller reserves
the next free slot under a short lock and then sleeps until that slot
arrives. Slots are handed out in arrival order.
"""

import asyncio
import threading
import time
from typing import Callable, Optional

from loguru import logger


class RateLimiter:
    """Keeps the long-run call rate at or below requests_per_second."""

    def __init__(self, requests_per_second: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        if requests_per_second is not None and requests_per_second <= 0:
            raise ValueError("requests_per_second must be greater than zero")
        self.requests_per_second = requests_per_second
        self._clock = clock
        self._lock = threading.Lock()
        self._next_slot = 0.0

    @property
    def unbounded(self) -> bool:
        return self.requests_per_second is None

    @property
    def interval(self) -> float:
        """Minimum spacing between two permitted calls"""
        return 0.0 if self.unbounded else 1.0 / self.requests_per_second

    def reserve(self) -> float:
        """Claim the next slot and return how long the caller must wait for it"""
        if self.unbounded:
            return 0.0
        with self._lock:
            now = self._clock()
            slot = max(now, self._next_slot)
            self._next_slot = slot + self.interval
            return slot - now

    async def acquire(self) -> None:
        """Block until this caller may send its request"""
        delay = self.reserve()
        if delay > 0:
            logger.debug(f"Rate limit reached, waiting {delay:.3f}s")
            await asyncio.sleep(delay)
