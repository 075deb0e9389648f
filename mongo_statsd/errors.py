"""Exception hierarchy for the exporter."""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(ExporterError):
    """Invalid configuration; fatal at startup."""


class StatusFetchError(ExporterError):
    """The serverStatus command could not be run."""


class StatusDecodeError(StatusFetchError):
    """The serverStatus document did not match the expected shape."""


class MetricsSendError(ExporterError):
    """A gauge could not be handed to the StatsD client."""

    def __init__(self, metric: str, cause: Exception) -> None:
        super().__init__(f"Failed to send gauge {metric}: {cause}")
        self.metric = metric
        self.cause = cause


class FatalExportError(ExporterError):
    """A tick failed in a way that should stop the process."""
