"""Fixed-period ticker."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class Ticker:
    """Fires on a fixed grid measured from start(), not from the last tick.

    Grid points that pass while the consumer is busy collapse into a single
    immediate tick, after which ticks return to the original grid.
    """

    def __init__(
        self,
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self._clock = clock
        self._sleep = sleep
        self._deadline: float | None = None
        self.dropped = 0

    def start(self) -> float:
        """Anchor the grid at now; returns the first deadline."""
        self._deadline = self._clock() + self.interval
        return self._deadline

    async def wait(self) -> None:
        """Sleep until the next tick is due."""
        deadline = self._deadline if self._deadline is not None else self.start()

        now = self._clock()
        if deadline + self.interval <= now:
            missed = int((now - deadline) // self.interval)
            deadline += missed * self.interval
            self.dropped += missed
            logger.debug("Ticker fell behind, dropped %d tick(s)", missed)

        delay = deadline - now
        self._deadline = deadline + self.interval
        if delay > 0:
            await self._sleep(delay)
