"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from models.records import Category, Reading, RecommendationRecord


class ReadingCreate(BaseModel):
    """Payload posted by a device for one reading."""

    dispositivo_id: str = Field(..., description="Identifier of the tank/device.")
    temperatura: float = Field(..., allow_inf_nan=False, description="Water temperature in °C.")
    oxigenio: Optional[float] = Field(
        default=None, allow_inf_nan=False, description="Dissolved oxygen in mg/L."
    )
    ph: Optional[float] = Field(default=None, allow_inf_nan=False)
    data_hora: Optional[datetime] = Field(
        default=None, description="Reading time; defaults to ingestion time."
    )

    @field_validator("dispositivo_id")
    @classmethod
    def _device_id_not_blank(cls, value: str) -> str:
        candidate = value.strip()
        if not candidate:
            raise ValueError("dispositivo_id must not be blank")
        return candidate


class ReadingResponse(BaseModel):
    id: int
    dispositivo_id: str
    temperatura: float
    oxigenio: Optional[float] = None
    ph: Optional[float] = None
    data_hora: datetime

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingResponse":
        return cls(
            id=reading.id,
            dispositivo_id=reading.device_id,
            temperatura=reading.temperature,
            oxigenio=reading.oxygen,
            ph=reading.ph,
            data_hora=reading.timestamp,
        )


class RecommendationItem(BaseModel):
    tipo: Category
    texto: str


class RecommendationResponse(BaseModel):
    """Averages, recommendations and motives from one evaluation."""

    temp_media: Optional[float] = None
    ox_media: Optional[float] = None
    ph_media: Optional[float] = None
    recomendacoes: List[RecommendationItem] = Field(default_factory=list)
    motivos: List[str] = Field(default_factory=list)
    texto: str = Field(..., description="Plain-text advisory for the same evaluation.")


class RecommendationHistoryItem(BaseModel):
    """A persisted recommendation audit row."""

    id: Optional[int] = None
    dispositivo_id: str
    recomendacao: List[RecommendationItem]
    motivo: str
    data_hora: datetime

    @classmethod
    def from_record(cls, record: RecommendationRecord) -> "RecommendationHistoryItem":
        return cls(
            id=record.id,
            dispositivo_id=record.device_id,
            recomendacao=[
                RecommendationItem(tipo=item.category, texto=item.text)
                for item in record.recommendations
            ],
            motivo=record.motive,
            data_hora=record.timestamp,
        )
