"""Store contracts consumed by the recommendation pipeline."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from models.records import Reading, RecommendationRecord, WindowedAverages


class WindowedAverageSource(Protocol):
    """The narrow read capability the aggregator depends on."""

    def query_windowed_averages(
        self, device_id: str, window_start: datetime, window_end: datetime
    ) -> WindowedAverages:
        """Return per-metric AVG/COUNT for readings with ``window_start <= ts <= window_end``."""
        ...


class RecommendationSink(Protocol):
    def insert_recommendation(self, record: RecommendationRecord) -> RecommendationRecord:
        ...


class ReadingStore(WindowedAverageSource, RecommendationSink, Protocol):
    """Append-only reading table plus the recommendation audit trail."""

    def insert_reading(
        self,
        device_id: str,
        temperature: float,
        oxygen: Optional[float] = None,
        ph: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> Reading:
        ...

    def list_readings(self, device_id: str, limit: int) -> list[Reading]:
        """Newest first."""
        ...

    def latest_reading(self, device_id: str) -> Optional[Reading]:
        ...

    def list_recommendations(self, device_id: str, limit: int) -> list[RecommendationRecord]:
        """Newest first."""
        ...
