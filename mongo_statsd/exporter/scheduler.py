"""Background export loop with graceful shutdown."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from mongo_statsd.exporter.ticker import Ticker

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class Scheduler:
    """Runs *callback* once per tick on a background task.

    Callback errors are logged and the loop keeps running, except for the
    exception types listed in *fatal_errors*, which end the loop and are
    kept on ``error``. Once stop() has been called no further tick starts.
    """

    def __init__(
        self,
        ticker: Ticker,
        callback: TickCallback,
        *,
        fatal_errors: tuple[type[Exception], ...] = (),
    ) -> None:
        self._ticker = ticker
        self._callback = callback
        self._fatal_errors = fatal_errors
        self._state = SchedulerState.IDLE
        self._stopping = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.cycles = 0
        self.error: Exception | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    def start(self) -> None:
        if self._state is not SchedulerState.IDLE:
            raise RuntimeError(f"Scheduler cannot start from state {self._state.value}")
        self._state = SchedulerState.RUNNING
        self._ticker.start()
        self._task = asyncio.create_task(self._run_loop(), name="export-loop")
        logger.info("Export loop started (every %gs)", self._ticker.interval)

    async def wait(self) -> None:
        """Return once the loop has ended (after stop() or a fatal error).

        Cancelling the caller does not cancel the loop itself.
        """
        if self._task is not None:
            await asyncio.wait({self._task})

    async def stop(self, grace: float = 5.0) -> None:
        """Stop ticking; give an in-flight tick *grace* seconds, then cancel it."""
        self._state = SchedulerState.SHUTTING_DOWN
        self._stopping.set()

        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            done, _ = await asyncio.wait({task}, timeout=grace)
            if not done:
                logger.warning(
                    "In-flight tick did not finish within %gs, abandoning it", grace,
                )
                task.cancel()
                await asyncio.wait({task})
        logger.info("Export loop stopped after %d cycle(s)", self.cycles)

    async def _run_loop(self) -> None:
        stop_wait = asyncio.create_task(self._stopping.wait())
        tick: asyncio.Task | None = None
        try:
            while self._state is SchedulerState.RUNNING:
                tick = asyncio.create_task(self._ticker.wait())
                await asyncio.wait(
                    {tick, stop_wait}, return_when=asyncio.FIRST_COMPLETED,
                )
                if self._stopping.is_set():
                    break

                self.cycles += 1
                try:
                    await self._callback()
                except asyncio.CancelledError:
                    raise
                except self._fatal_errors as exc:
                    logger.critical("Export loop aborted: %s", exc)
                    self.error = exc
                    self._state = SchedulerState.SHUTTING_DOWN
                    break
                except Exception as exc:
                    logger.error("Tick %d failed: %s", self.cycles, exc)
        finally:
            stop_wait.cancel()
            if tick is not None:
                tick.cancel()
