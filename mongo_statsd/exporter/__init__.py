from mongo_statsd.exporter.cycle import ExportCycle
from mongo_statsd.exporter.scheduler import Scheduler, SchedulerState
from mongo_statsd.exporter.ticker import Ticker

__all__ = ["ExportCycle", "Scheduler", "SchedulerState", "Ticker"]
