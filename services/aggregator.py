"""Aggregation of windowed sensor readings."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Optional

from datastore.readings import WindowedAverageSource
from models.errors import ValidationError
from models.records import AggregateSnapshot
from services.window import window_bounds

logger = logging.getLogger(__name__)


class Aggregator:
    """Reduce one device's readings over a trailing window to a snapshot.

    The store does the averaging in a single query. Each metric is averaged
    and counted over its own non-null values, so a reading without oxygen or
    pH still contributes to the temperature average.
    """

    def __init__(self, store: WindowedAverageSource) -> None:
        self.store = store

    def aggregate(
        self, device_id: str, days: int, now: Optional[datetime] = None
    ) -> AggregateSnapshot:
        if not device_id or not device_id.strip():
            raise ValidationError("dispositivo_id is required.")
        if days < 1:
            raise ValidationError("Window must span at least one day.")

        window_start, window_end = window_bounds(days, now)
        start_time = time.perf_counter()
        averages = self.store.query_windowed_averages(device_id, window_start, window_end)
        query_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(
            "Aggregated readings",
            extra={
                "device_id": device_id,
                "window_days": days,
                "reading_count": averages.cnt_temp,
                "query_ms": query_ms,
            },
        )

        if averages.cnt_temp == 0:
            return AggregateSnapshot(device_id=device_id, window_days=days)

        return AggregateSnapshot(
            device_id=device_id,
            window_days=days,
            temperature=averages.avg_temp,
            oxygen=averages.avg_ox if averages.cnt_ox > 0 else None,
            ph=averages.avg_ph if averages.cnt_ph > 0 else None,
            temperature_count=averages.cnt_temp,
            oxygen_count=averages.cnt_ox,
            ph_count=averages.cnt_ph,
        )
