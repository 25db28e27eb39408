from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import List

from models.errors import StoreError
from models.records import Category, Recommendation, RecommendationRecord
from services.audit import AuditWriter


def _record(device_id: str = "tank-1") -> RecommendationRecord:
    return RecommendationRecord(
        device_id=device_id,
        recommendations=(Recommendation(Category.informational, "Sem leituras nos últimos 7 dias."),),
        motive="",
        timestamp=datetime(2024, 6, 1, tzinfo=timezone.utc),
    )


class MemorySink:
    def __init__(self) -> None:
        self.records: List[RecommendationRecord] = []

    def insert_recommendation(self, record: RecommendationRecord) -> RecommendationRecord:
        self.records.append(record)
        return record


class FailingSink:
    def insert_recommendation(self, record: RecommendationRecord) -> RecommendationRecord:
        raise StoreError("disk full")


class BlockingSink(MemorySink):
    def __init__(self) -> None:
        super().__init__()
        self.release = threading.Event()

    def insert_recommendation(self, record: RecommendationRecord) -> RecommendationRecord:
        self.release.wait(timeout=5)
        return super().insert_recommendation(record)


def test_submitted_records_are_written() -> None:
    sink = MemorySink()
    writer = AuditWriter(sink, workers=1, queue_size=10)

    assert writer.submit(_record("tank-1")) is True
    assert writer.submit(_record("tank-2")) is True
    writer.drain(timeout=5)
    writer.shutdown()

    assert [record.device_id for record in sink.records] == ["tank-1", "tank-2"]


def test_write_failures_are_logged_not_raised(caplog) -> None:
    writer = AuditWriter(FailingSink(), workers=1, queue_size=10)

    with caplog.at_level(logging.ERROR, logger="services.audit"):
        assert writer.submit(_record()) is True
        writer.drain(timeout=5)
    writer.shutdown()

    failures = [r for r in caplog.records if r.getMessage() == "Failed to persist recommendation record"]
    assert failures
    assert getattr(failures[0], "device_id", None) == "tank-1"
    assert failures[0].exc_info is not None


def test_full_queue_discards_records(caplog) -> None:
    sink = BlockingSink()
    writer = AuditWriter(sink, workers=1, queue_size=1)

    try:
        with caplog.at_level(logging.WARNING, logger="services.audit"):
            assert writer.submit(_record("first")) is True
            assert writer.submit(_record("second")) is False
    finally:
        sink.release.set()
        writer.drain(timeout=5)
        writer.shutdown()

    assert [record.device_id for record in sink.records] == ["first"]
    assert any(getattr(r, "reason", None) == "queue full" for r in caplog.records)


def test_submit_after_shutdown_is_discarded() -> None:
    sink = MemorySink()
    writer = AuditWriter(sink, workers=1, queue_size=2)
    writer.shutdown()

    assert writer.submit(_record()) is False
    assert sink.records == []
