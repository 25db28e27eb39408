"""Request-level orchestration of ingestion and recommendations."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import List, Optional, Union

from app.schemas import RecommendationResponse
from datastore.readings import ReadingStore
from datastore.sqlite_store import build_default_store
from models.errors import ValidationError
from models.records import Reading, RecommendationRecord
from services.aggregator import Aggregator
from services.audit import AuditWriter
from services.presenter import present
from services.rules import evaluate, no_data_recommendation
from services.window import DEFAULT_WINDOW_DAYS, MAX_WINDOW_DAYS, resolve_window_days
from settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_READING_LIMIT = 50
MAX_READING_LIMIT = 1000


def _require_device_id(device_id: Optional[str]) -> str:
    candidate = (device_id or "").strip()
    if not candidate:
        raise ValidationError("dispositivo_id is required.")
    return candidate


def resolve_limit(raw: Optional[Union[str, int]]) -> int:
    """Parse a listing ``limit``; invalid values use the default, large ones are capped."""
    if raw is None:
        return DEFAULT_READING_LIMIT
    try:
        parsed = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_READING_LIMIT
    if parsed < 1:
        return DEFAULT_READING_LIMIT
    return min(parsed, MAX_READING_LIMIT)


class RecommendationService:
    """Ties the store, aggregator, rules, presenter and audit writer together."""

    def __init__(
        self,
        store: ReadingStore,
        aggregator: Aggregator,
        audit_writer: AuditWriter,
        default_days: int = DEFAULT_WINDOW_DAYS,
        max_days: int = MAX_WINDOW_DAYS,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.audit_writer = audit_writer
        self.default_days = default_days
        self.max_days = max_days

    def get_recommendation(
        self,
        device_id: Optional[str],
        days: Optional[Union[str, int]] = None,
        now: Optional[datetime] = None,
    ) -> RecommendationResponse:
        """Aggregate, evaluate and render one device's window.

        Store errors propagate. The audit record is submitted after the
        response has been built and its outcome never affects the result.
        """
        device = _require_device_id(device_id)
        window_days = resolve_window_days(days, default=self.default_days, maximum=self.max_days)

        snapshot = self.aggregator.aggregate(device, window_days, now=now)
        if snapshot.is_empty:
            recommendations = [no_data_recommendation(window_days)]
            motives: List[str] = []
        else:
            recommendations, motives = evaluate(snapshot)

        result = present(snapshot, recommendations, motives)
        logger.info(
            "Recommendation generated",
            extra={
                "device_id": device,
                "window_days": window_days,
                "reading_count": snapshot.temperature_count,
                "recommendation_count": len(recommendations),
            },
        )

        self.audit_writer.submit(
            RecommendationRecord(
                device_id=device,
                recommendations=tuple(recommendations),
                motive="; ".join(motives),
                timestamp=datetime.now(timezone.utc),
            )
        )
        return result

    def record_reading(
        self,
        device_id: Optional[str],
        temperature: float,
        oxygen: Optional[float] = None,
        ph: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> Reading:
        device = _require_device_id(device_id)
        reading = self.store.insert_reading(
            device, temperature, oxygen=oxygen, ph=ph, timestamp=timestamp
        )
        logger.info("Reading stored", extra={"device_id": device, "record_id": reading.id})
        return reading

    def recent_readings(
        self, device_id: Optional[str], limit: Optional[Union[str, int]] = None
    ) -> List[Reading]:
        return self.store.list_readings(_require_device_id(device_id), resolve_limit(limit))

    def latest_reading(self, device_id: Optional[str]) -> Reading:
        device = _require_device_id(device_id)
        reading = self.store.latest_reading(device)
        if reading is None:
            raise KeyError(f"No readings found for device {device!r}.")
        return reading

    def history(
        self, device_id: Optional[str], limit: Optional[Union[str, int]] = None
    ) -> List[RecommendationRecord]:
        return self.store.list_recommendations(
            _require_device_id(device_id), resolve_limit(limit)
        )

    def shutdown(self) -> None:
        """Flush pending audit writes and release worker threads."""
        self.audit_writer.shutdown(wait=True)


@lru_cache
def build_default_service() -> RecommendationService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    store = build_default_store()
    audit_writer = AuditWriter(
        sink=store,
        workers=settings.audit_workers,
        queue_size=settings.audit_queue_size,
    )
    return RecommendationService(
        store=store,
        aggregator=Aggregator(store),
        audit_writer=audit_writer,
        default_days=settings.default_window_days,
        max_days=settings.max_window_days,
    )
