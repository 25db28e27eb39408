from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Iterator

import pytest

from datastore.sqlite_store import SQLiteReadingStore
from models.errors import StoreError, ValidationError
from models.records import Category
from services.advisor import RecommendationService, resolve_limit
from services.aggregator import Aggregator
from services.audit import AuditWriter

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def _build_service(store) -> RecommendationService:
    return RecommendationService(
        store=store,
        aggregator=Aggregator(store),
        audit_writer=AuditWriter(store, workers=1, queue_size=10),
    )


@pytest.fixture()
def store(tmp_path: Path) -> SQLiteReadingStore:
    return SQLiteReadingStore(tmp_path / "telemetry.db")


@pytest.fixture()
def service(store: SQLiteReadingStore) -> Iterator[RecommendationService]:
    service = _build_service(store)
    yield service
    service.shutdown()


def test_scenario_low_temperature(service: RecommendationService) -> None:
    service.record_reading("tank-1", 22.0, oxygen=6.0, ph=7.0, timestamp=NOW - timedelta(hours=2))

    result = service.get_recommendation("tank-1", now=NOW)

    assert result.temp_media == pytest.approx(22.0)
    assert [item.tipo for item in result.recomendacoes] == [Category.feeding]
    assert result.motivos == ["Temp média 22.00°C"]


def test_scenario_oxygen_and_ph(service: RecommendationService) -> None:
    service.record_reading("tank-1", 27.0, oxygen=2.0, ph=9.5, timestamp=NOW - timedelta(days=1))
    service.record_reading("tank-1", 29.0, oxygen=4.0, ph=10.5, timestamp=NOW - timedelta(days=2))

    result = service.get_recommendation("tank-1", "7", now=NOW)

    assert [item.tipo for item in result.recomendacoes] == [
        Category.feeding,
        Category.aeration,
        Category.water_quality,
    ]
    assert result.motivos == ["O2 médio 3.00 mg/L", "pH médio 10.00"]


def test_scenario_no_readings(service: RecommendationService) -> None:
    result = service.get_recommendation("tank-1", now=NOW)

    assert result.temp_media is None
    assert result.ox_media is None
    assert result.ph_media is None
    assert [(item.tipo, item.texto) for item in result.recomendacoes] == [
        (Category.informational, "Sem leituras nos últimos 7 dias.")
    ]
    assert result.motivos == []


def test_window_parameter_is_clamped(service: RecommendationService) -> None:
    service.record_reading("tank-1", 20.0, timestamp=NOW - timedelta(days=300))

    assert service.get_recommendation("tank-1", "9999", now=NOW).temp_media == pytest.approx(20.0)
    assert service.get_recommendation("tank-1", "abc", now=NOW).temp_media is None


def test_recommendation_is_audited(
    service: RecommendationService, store: SQLiteReadingStore
) -> None:
    service.record_reading("tank-1", 28.0, oxygen=3.0, ph=10.0, timestamp=NOW - timedelta(hours=1))

    service.get_recommendation("tank-1", now=NOW)
    service.audit_writer.drain(timeout=5)

    history = service.history("tank-1")
    assert len(history) == 1
    assert [item.category for item in history[0].recommendations] == [
        Category.feeding,
        Category.aeration,
        Category.water_quality,
    ]
    assert history[0].motive == "O2 médio 3.00 mg/L; pH médio 10.00"


def test_audit_failure_does_not_affect_response(store: SQLiteReadingStore) -> None:
    class NoAuditStore:
        def __getattr__(self, name):
            return getattr(store, name)

        def insert_recommendation(self, record):
            raise StoreError("audit table locked")

    flaky = NoAuditStore()
    service = _build_service(flaky)
    try:
        service.record_reading("tank-1", 31.0, timestamp=NOW - timedelta(hours=1))
        result = service.get_recommendation("tank-1", now=NOW)
        service.audit_writer.drain(timeout=5)
    finally:
        service.shutdown()

    assert result.recomendacoes[0].tipo is Category.aeration
    assert store.list_recommendations("tank-1", limit=10) == []


def test_store_failure_propagates(store: SQLiteReadingStore) -> None:
    class BrokenStore:
        def __getattr__(self, name):
            return getattr(store, name)

        def query_windowed_averages(self, device_id, window_start, window_end):
            raise StoreError("connection refused")

    service = _build_service(BrokenStore())
    try:
        with pytest.raises(StoreError):
            service.get_recommendation("tank-1", now=NOW)
        assert service.audit_writer.pending == 0
    finally:
        service.shutdown()


@pytest.mark.parametrize("device_id", [None, "", "   "])
def test_missing_device_id_is_rejected(service: RecommendationService, device_id) -> None:
    with pytest.raises(ValidationError):
        service.get_recommendation(device_id)
    with pytest.raises(ValidationError):
        service.record_reading(device_id, 25.0)


def test_latest_reading_missing_device_raises_key_error(service: RecommendationService) -> None:
    with pytest.raises(KeyError):
        service.latest_reading("tank-404")


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(None, 50), ("abc", 50), ("0", 50), ("10", 10), (5000, 1000)],
)
def test_resolve_limit(raw, expected) -> None:
    assert resolve_limit(raw) == expected
