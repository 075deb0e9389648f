"""Application orchestrator: StatsD client, export loop, signals, shutdown."""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import Callable

import statsd
from rich.logging import RichHandler

from mongo_statsd.config.duration import format_duration
from mongo_statsd.config.settings import Settings
from mongo_statsd.errors import FatalExportError
from mongo_statsd.exporter import ExportCycle, Scheduler, Ticker
from mongo_statsd.status.fetcher import StatusFetcher

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGINT", "SIGTERM", "SIGQUIT")
    if hasattr(signal, name)
)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2

ClientFactory = Callable[[str, int, str | None], statsd.StatsClient]


def _statsd_client(host: str, port: int, prefix: str | None) -> statsd.StatsClient:
    return statsd.StatsClient(host=host, port=port, prefix=prefix)


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )
    # Driver heartbeats and topology events only add noise
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


class Application:
    """Top-level application orchestrator."""

    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: ClientFactory = _statsd_client,
        fetcher: StatusFetcher | None = None,
    ) -> None:
        self.settings = settings
        self._client_factory = client_factory
        self.fetcher = fetcher or StatusFetcher(
            settings.mongo.url, settings.mongo.connect_timeout,
        )
        self.scheduler: Scheduler | None = None
        self.cycle: ExportCycle | None = None
        self._shutdown = asyncio.Event()
        self._signal: signal.Signals | None = None

    def request_shutdown(self, sig: signal.Signals | None = None) -> None:
        """Ask the running application to stop (idempotent)."""
        if sig is not None and self._signal is None:
            self._signal = sig
            logger.info("Received %s", sig.name)
        self._shutdown.set()

    async def run(self) -> int:
        """Export until a shutdown signal or a fatal error; return the exit code."""
        settings = self.settings
        prefix = settings.metric_prefix or None

        if settings.debug:
            logger.debug(
                "Sending stats to %s using prefix: '%s' at interval of %s",
                settings.statsd_address, settings.metric_prefix,
                format_duration(settings.interval),
            )

        try:
            client = self._client_factory(settings.statsd.host, settings.statsd.port, prefix)
        except OSError as exc:
            logger.error("Cannot create StatsD client for %s: %s",
                         settings.statsd_address, exc)
            return EXIT_FATAL

        self.cycle = ExportCycle(
            self.fetcher, client,
            abort_on_fetch_error=settings.abort_on_fetch_error,
        )
        self.scheduler = Scheduler(
            Ticker(settings.interval), self.cycle, fatal_errors=(FatalExportError,),
        )

        loop = asyncio.get_running_loop()
        self._install_signal_handlers(loop)
        try:
            self.scheduler.start()
            logger.info("Exporting %s to %s", settings.mongo.url, settings.statsd_address)

            shutdown_wait = asyncio.create_task(self._shutdown.wait())
            loop_done = asyncio.create_task(self.scheduler.wait())
            await asyncio.wait(
                {shutdown_wait, loop_done}, return_when=asyncio.FIRST_COMPLETED,
            )
            # Cancelling the waiter leaves the export loop itself untouched
            shutdown_wait.cancel()
            loop_done.cancel()
        finally:
            self._remove_signal_handlers(loop)
            await self.shutdown(client)

        if self.scheduler.error is not None:
            return EXIT_FATAL
        return EXIT_OK

    async def shutdown(self, client: statsd.StatsClient) -> None:
        """Graceful shutdown."""
        logger.info("Shutting down...")
        if self.scheduler is not None:
            await self.scheduler.stop(grace=self.settings.shutdown_grace)
        client.close()
        if self.cycle is not None:
            logger.info(
                "Ticks exported: %d, skipped: %d, send failures: %d",
                self.cycle.sent, self.cycle.skipped, self.cycle.send_failures,
            )
        logger.info("Shutdown complete.")

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
            except NotImplementedError:
                # Windows event loops; Ctrl+C still arrives as KeyboardInterrupt
                logger.debug("Signal handlers unavailable for %s", sig.name)

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.remove_signal_handler(sig)
            except NotImplementedError:
                pass
