"""Typed snapshot of the serverStatus document."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class _Section(BaseModel):
    # Missing counters stay at 0; extra server fields are ignored.
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Connections(_Section):
    current: int = 0
    available: int = 0
    total_created: int = Field(default=0, alias="totalCreated")


class Mem(_Section):
    resident: int = 0
    virtual: int = 0
    mapped: int = 0
    mapped_with_journal: int = Field(default=0, alias="mappedWithJournal")


class ReadWriteTotal(_Section):
    readers: int = 0
    writers: int = 0
    total: int = 0


class GlobalLock(_Section):
    total_time: int = Field(default=0, alias="totalTime")
    lock_time: int = Field(default=0, alias="lockTime")
    current_queue: ReadWriteTotal = Field(
        default_factory=ReadWriteTotal, alias="currentQueue",
    )
    active_clients: ReadWriteTotal = Field(
        default_factory=ReadWriteTotal, alias="activeClients",
    )


class OpCounters(_Section):
    insert: int = 0
    query: int = 0
    update: int = 0
    delete: int = 0
    getmore: int = 0
    command: int = 0


class ExtraInfo(_Section):
    page_faults: int = 0
    heap_usage_bytes: int = 0


class ServerStatus(_Section):
    """One fetched, immutable copy of the server's status document."""

    host: str = ""
    version: str = ""
    process: str = ""
    pid: int = 0
    uptime: float = 0.0
    uptime_millis: int = Field(default=0, alias="uptimeMillis")
    uptime_estimate: int = Field(default=0, alias="uptimeEstimate")
    local_time: datetime | None = Field(default=None, alias="localTime")
    connections: Connections = Field(default_factory=Connections)
    extra_info: ExtraInfo = Field(default_factory=ExtraInfo)
    mem: Mem = Field(default_factory=Mem)
    global_lock: GlobalLock = Field(default_factory=GlobalLock, alias="globalLock")
    opcounters: OpCounters = Field(default_factory=OpCounters)
    opcounters_repl: OpCounters = Field(
        default_factory=OpCounters, alias="opcountersRepl",
    )
