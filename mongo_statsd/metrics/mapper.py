"""serverStatus → flat gauge translation and push."""

from __future__ import annotations

import logging
from typing import NamedTuple, Protocol

from mongo_statsd.errors import MetricsSendError
from mongo_statsd.status.models import (
    Connections,
    ExtraInfo,
    GlobalLock,
    Mem,
    OpCounters,
    ServerStatus,
)

logger = logging.getLogger(__name__)

SAMPLE_RATE = 1.0


class Gauge(NamedTuple):
    name: str
    value: int


class GaugeClient(Protocol):
    """The subset of ``statsd.StatsClient`` used here."""

    def gauge(self, stat: str, value: int, rate: float = 1,
              delta: bool = False) -> None: ...


def _connections(c: Connections) -> list[Gauge]:
    return [
        Gauge("connections.current", c.current),
        Gauge("connections.available", c.available),
        Gauge("connections.created", c.total_created),
    ]


def _opcounters(ops: OpCounters) -> list[Gauge]:
    return [
        Gauge("ops.inserts", ops.insert),
        Gauge("ops.queries", ops.query),
        Gauge("ops.updates", ops.update),
        Gauge("ops.deletes", ops.delete),
        Gauge("ops.getmores", ops.getmore),
        Gauge("ops.commands", ops.command),
    ]


def _mem(mem: Mem) -> list[Gauge]:
    return [
        Gauge("mem.resident", mem.resident),
        Gauge("mem.virtual", mem.virtual),
        Gauge("mem.mapped", mem.mapped),
        Gauge("mem.mapped_with_journal", mem.mapped_with_journal),
    ]


def _global_lock(lock: GlobalLock) -> list[Gauge]:
    return [
        Gauge("global_lock.total_time", lock.total_time),
        Gauge("global_lock.lock_time", lock.lock_time),
        Gauge("global_lock.active_readers", lock.active_clients.readers),
        Gauge("global_lock.active_writers", lock.active_clients.writers),
        Gauge("global_lock.active_total", lock.active_clients.total),
        Gauge("global_lock.queued_readers", lock.current_queue.readers),
        Gauge("global_lock.queued_writers", lock.current_queue.writers),
        Gauge("global_lock.queued_total", lock.current_queue.total),
    ]


def _extra_info(info: ExtraInfo) -> list[Gauge]:
    return [
        Gauge("extra.page_faults", info.page_faults),
        Gauge("extra.heap_usage", info.heap_usage_bytes),
    ]


def map_status(status: ServerStatus) -> list[Gauge]:
    """Return the fixed, ordered gauge list for a snapshot.

    Values are copied verbatim. ``opcounters_repl`` is decoded but never
    emitted; only the primary op counters are exported.
    """
    gauges: list[Gauge] = []
    gauges.extend(_connections(status.connections))
    gauges.extend(_opcounters(status.opcounters))
    gauges.extend(_mem(status.mem))
    gauges.extend(_global_lock(status.global_lock))
    gauges.extend(_extra_info(status.extra_info))
    return gauges


def push_gauges(client: GaugeClient, gauges: list[Gauge],
                rate: float = SAMPLE_RATE) -> None:
    """Send gauges in order; stop at the first failure."""
    for gauge in gauges:
        try:
            client.gauge(gauge.name, gauge.value, rate=rate)
        except Exception as exc:
            raise MetricsSendError(gauge.name, exc) from exc


def push_status(client: GaugeClient, status: ServerStatus) -> list[Gauge]:
    """Map a snapshot and send it. Returns the gauges that were sent."""
    gauges = map_status(status)
    push_gauges(client, gauges)
    logger.debug("Sent %d gauges", len(gauges))
    return gauges
