"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
import statsd

from mongo_statsd.status.models import ServerStatus


def make_status_document(**overrides) -> dict:
    """A serverStatus reply shaped like the one the server sends."""
    doc = {
        "host": "db1:27017",
        "version": "4.4.29",
        "process": "mongod",
        "pid": 4242,
        "uptime": 3600.0,
        "uptimeMillis": 3600123,
        "uptimeEstimate": 3600,
        "connections": {"current": 5, "available": 995, "totalCreated": 100},
        "opcounters": {
            "insert": 1, "query": 2, "update": 0,
            "delete": 0, "getmore": 3, "command": 4,
        },
        "opcountersRepl": {
            "insert": 701, "query": 702, "update": 703,
            "delete": 704, "getmore": 705, "command": 706,
        },
        "mem": {"bits": 64, "resident": 50, "virtual": 200, "mapped": 10,
                "mappedWithJournal": 10, "supported": True},
        "globalLock": {
            "totalTime": 3600000000,
            "lockTime": 1234,
            "currentQueue": {"total": 3, "readers": 1, "writers": 2},
            "activeClients": {"total": 7, "readers": 4, "writers": 3},
        },
        "extra_info": {"note": "fields vary by platform",
                       "page_faults": 12, "heap_usage_bytes": 65536},
        "asserts": {"regular": 0, "warning": 0},
    }
    doc.update(overrides)
    return doc


class FakeTicker:
    """Ticker replacement driven by the test via fire()."""

    interval = 5.0

    def __init__(self) -> None:
        self._queue: asyncio.Queue[None] = asyncio.Queue()
        self.started = False

    def start(self) -> None:
        self.started = True

    async def wait(self) -> None:
        await self._queue.get()

    def fire(self, count: int = 1) -> None:
        for _ in range(count):
            self._queue.put_nowait(None)


@pytest.fixture
def status_document() -> dict:
    return make_status_document()


@pytest.fixture
def server_status(status_document: dict) -> ServerStatus:
    return ServerStatus.model_validate(status_document)


@pytest.fixture
def statsd_client() -> MagicMock:
    return MagicMock(spec=statsd.StatsClient)


@pytest.fixture
def fake_ticker() -> FakeTicker:
    return FakeTicker()
