"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Category(str, Enum):
    """Recommendation categories exposed on the wire as ``tipo``."""

    feeding = "racao"
    aeration = "aeracao"
    water_quality = "qualidade_agua"
    informational = "info"


@dataclass(frozen=True, slots=True)
class Reading:
    """A single stored sensor reading for one device."""

    id: int
    device_id: str
    temperature: float
    oxygen: Optional[float]
    ph: Optional[float]
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class WindowedAverages:
    """Raw result of the store's windowed aggregate query."""

    avg_temp: Optional[float] = None
    avg_ox: Optional[float] = None
    avg_ph: Optional[float] = None
    cnt_temp: int = 0
    cnt_ox: int = 0
    cnt_ph: int = 0


@dataclass(frozen=True, slots=True)
class AggregateSnapshot:
    """Per-metric averages and counts for one device over one window.

    An average is set if and only if the matching count is positive.
    """

    device_id: str
    window_days: int
    temperature: Optional[float] = None
    oxygen: Optional[float] = None
    ph: Optional[float] = None
    temperature_count: int = 0
    oxygen_count: int = 0
    ph_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.temperature_count == 0


@dataclass(frozen=True, slots=True)
class Recommendation:
    category: Category
    text: str

    def to_payload(self) -> dict[str, str]:
        return {"tipo": self.category.value, "texto": self.text}


@dataclass(frozen=True, slots=True)
class RecommendationRecord:
    """Audit row written once per evaluation."""

    device_id: str
    recommendations: tuple[Recommendation, ...]
    motive: str
    timestamp: datetime
    id: Optional[int] = None
