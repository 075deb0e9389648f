"""Tests for the serverStatus snapshot model."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from conftest import make_status_document
from mongo_statsd.status.models import ServerStatus


def test_decode_full_document(status_document):
    status = ServerStatus.model_validate(status_document)
    assert status.host == "db1:27017"
    assert status.pid == 4242
    assert status.uptime_millis == 3600123
    assert status.connections.total_created == 100
    assert status.mem.mapped_with_journal == 10
    assert status.global_lock.total_time == 3600000000
    assert status.global_lock.current_queue.writers == 2
    assert status.global_lock.active_clients.readers == 4
    assert status.opcounters.getmore == 3
    assert status.opcounters_repl.command == 706
    assert status.extra_info.heap_usage_bytes == 65536


def test_missing_sections_default_to_zero():
    # Newer servers no longer report mapped memory or lock time
    doc = make_status_document(
        mem={"bits": 64, "resident": 50, "virtual": 200},
        globalLock={"totalTime": 10},
    )
    del doc["opcountersRepl"]
    status = ServerStatus.model_validate(doc)
    assert status.mem.mapped == 0
    assert status.mem.mapped_with_journal == 0
    assert status.global_lock.lock_time == 0
    assert status.global_lock.current_queue.total == 0
    assert status.opcounters_repl.insert == 0


def test_empty_document():
    status = ServerStatus.model_validate({})
    assert status.connections.current == 0
    assert status.local_time is None


def test_local_time_decoded():
    ts = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    status = ServerStatus.model_validate(make_status_document(localTime=ts))
    assert status.local_time == ts


def test_wrong_type_rejected():
    doc = make_status_document(connections={"current": "lots"})
    with pytest.raises(ValidationError):
        ServerStatus.model_validate(doc)


def test_large_counters_preserved():
    big = 2**62 + 7
    status = ServerStatus.model_validate(
        make_status_document(globalLock={"totalTime": big}),
    )
    assert status.global_lock.total_time == big


def test_snapshot_is_frozen(server_status):
    with pytest.raises(ValidationError):
        server_status.connections.current = 1  # type: ignore[misc]
