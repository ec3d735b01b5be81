from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional, Protocol


class RateLimiter(Protocol):
    async def wait(self) -> None:
        ...


class FixedIntervalLimiter:
    """Gate that keeps at least ``interval`` seconds between successive passes.

    The first pass is immediate.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval < 0:
            raise ValueError("interval must not be negative")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None

    async def wait(self) -> None:
        if self._last is not None and self.interval > 0:
            remaining = self.interval - (self._clock() - self._last)
            if remaining > 0:
                await self._sleep(remaining)
        self._last = self._clock()


class NoDelayLimiter:
    async def wait(self) -> None:
        return None
