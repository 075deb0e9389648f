"""One export tick: fetch serverStatus, map it, send the gauges."""

from __future__ import annotations

import logging
from typing import Protocol

from mongo_statsd.errors import FatalExportError, MetricsSendError, StatusFetchError
from mongo_statsd.metrics import GaugeClient, push_status
from mongo_statsd.status.models import ServerStatus

logger = logging.getLogger(__name__)


class Fetcher(Protocol):
    async def fetch(self) -> ServerStatus: ...


class ExportCycle:
    """Callable run by the Scheduler on every tick.

    A failed fetch skips the tick, or raises FatalExportError when
    *abort_on_fetch_error* is set. A failed send is logged; the remaining
    gauges of that tick are not sent.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        client: GaugeClient,
        *,
        abort_on_fetch_error: bool = False,
    ) -> None:
        self._fetcher = fetcher
        self._client = client
        self._abort_on_fetch_error = abort_on_fetch_error
        self.sent = 0
        self.skipped = 0
        self.send_failures = 0

    async def __call__(self) -> None:
        try:
            status = await self._fetcher.fetch()
        except StatusFetchError as exc:
            if self._abort_on_fetch_error:
                raise FatalExportError(str(exc)) from exc
            self.skipped += 1
            logger.warning("Skipping tick, could not fetch status: %s", exc)
            return

        try:
            gauges = push_status(self._client, status)
        except MetricsSendError as exc:
            self.send_failures += 1
            logger.error("%s", exc)
            return

        self.sent += 1
        logger.debug("Tick complete: %d gauges for %s", len(gauges), status.host or "server")
