"""Metric translation from serverStatus snapshots to StatsD gauges."""

from mongo_statsd.metrics.mapper import (
    SAMPLE_RATE,
    Gauge,
    GaugeClient,
    map_status,
    push_gauges,
    push_status,
)

__all__ = [
    "SAMPLE_RATE",
    "Gauge",
    "GaugeClient",
    "map_status",
    "push_gauges",
    "push_status",
]
