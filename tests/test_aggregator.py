"""Unit tests for the aggregation logic."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Tuple

import pytest

from datastore.sqlite_store import SQLiteReadingStore
from models.errors import StoreError, ValidationError
from models.records import WindowedAverages
from services.aggregator import Aggregator

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeStore:
    def __init__(self, averages: WindowedAverages) -> None:
        self.averages = averages
        self.calls: List[Tuple[str, datetime, datetime]] = []

    def query_windowed_averages(self, device_id, window_start, window_end):
        self.calls.append((device_id, window_start, window_end))
        return self.averages


class BrokenStore:
    def query_windowed_averages(self, device_id, window_start, window_end):
        raise StoreError("connection refused")


def test_aggregate_queries_requested_window() -> None:
    store = FakeStore(WindowedAverages(avg_temp=25.0, cnt_temp=2))

    Aggregator(store).aggregate("tank-1", 7, now=NOW)

    assert store.calls == [("tank-1", NOW - timedelta(days=7), NOW)]


def test_aggregate_builds_snapshot_with_counts() -> None:
    store = FakeStore(
        WindowedAverages(avg_temp=26.123456, avg_ox=6.5, avg_ph=None, cnt_temp=4, cnt_ox=2, cnt_ph=0)
    )

    snapshot = Aggregator(store).aggregate("tank-1", 3, now=NOW)

    assert snapshot.device_id == "tank-1"
    assert snapshot.window_days == 3
    assert snapshot.temperature == 26.123456
    assert snapshot.oxygen == 6.5
    assert snapshot.ph is None
    assert (snapshot.temperature_count, snapshot.oxygen_count, snapshot.ph_count) == (4, 2, 0)
    assert not snapshot.is_empty


def test_aggregate_without_temperature_is_empty() -> None:
    store = FakeStore(WindowedAverages())

    snapshot = Aggregator(store).aggregate("tank-1", 7, now=NOW)

    assert snapshot.is_empty
    assert snapshot.temperature is None
    assert snapshot.oxygen is None
    assert snapshot.ph is None


def test_aggregate_rejects_blank_device_before_querying() -> None:
    store = FakeStore(WindowedAverages())

    with pytest.raises(ValidationError):
        Aggregator(store).aggregate("  ", 7, now=NOW)

    assert store.calls == []


def test_aggregate_propagates_store_errors() -> None:
    with pytest.raises(StoreError):
        Aggregator(BrokenStore()).aggregate("tank-1", 7, now=NOW)


def _seed(store: SQLiteReadingStore) -> None:
    store.insert_reading("tank-1", 20.0, oxygen=4.0, ph=7.0, timestamp=NOW - timedelta(hours=1))
    store.insert_reading("tank-1", 30.0, timestamp=NOW - timedelta(days=2))
    store.insert_reading("tank-1", 25.0, oxygen=8.0, timestamp=NOW - timedelta(days=10))
    store.insert_reading("tank-1", 40.0, ph=9.5, timestamp=NOW - timedelta(days=400))
    store.insert_reading("tank-2", 10.0, oxygen=1.0, ph=1.0, timestamp=NOW - timedelta(hours=1))


def test_sqlite_aggregation_handles_missing_metrics_independently(tmp_path: Path) -> None:
    store = SQLiteReadingStore(tmp_path / "telemetry.db")
    _seed(store)

    snapshot = Aggregator(store).aggregate("tank-1", 7, now=NOW)

    assert snapshot.temperature_count == 2
    assert snapshot.temperature == pytest.approx(25.0)
    assert snapshot.oxygen_count == 1
    assert snapshot.oxygen == pytest.approx(4.0)
    assert snapshot.ph_count == 1
    assert snapshot.ph == pytest.approx(7.0)


def test_sqlite_counts_grow_with_window(tmp_path: Path) -> None:
    store = SQLiteReadingStore(tmp_path / "telemetry.db")
    _seed(store)
    aggregator = Aggregator(store)

    counts = [
        aggregator.aggregate("tank-1", days, now=NOW).temperature_count
        for days in (1, 7, 30, 365)
    ]

    assert counts == sorted(counts)
    assert counts == [1, 2, 3, 3]


def test_sqlite_window_without_readings_is_empty(tmp_path: Path) -> None:
    store = SQLiteReadingStore(tmp_path / "telemetry.db")
    _seed(store)

    snapshot = Aggregator(store).aggregate("tank-1", 7, now=NOW + timedelta(days=60))

    assert snapshot.is_empty
