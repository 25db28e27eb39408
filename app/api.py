"""HTTP route definitions for the service."""

from __future__ import annotations

import logging
from datetime import timezone
from typing import List, NoReturn, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from app.schemas import (
    ReadingCreate,
    ReadingResponse,
    RecommendationHistoryItem,
    RecommendationResponse,
)
from models.errors import StoreError
from models.records import Reading
from services.advisor import RecommendationService, build_default_service

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service() -> RecommendationService:
    return build_default_service()


def _store_failure(exc: StoreError, detail: str, device_id: Optional[str]) -> NoReturn:
    logger.error(detail, extra={"device_id": device_id, "reason": str(exc)})
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=detail,
    ) from exc


def _bad_request(exc: ValueError) -> NoReturn:
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=str(exc),
    ) from exc


def _format_plain_reading(reading: Reading) -> str:
    def _value(metric: Optional[float]) -> str:
        return "null" if metric is None else str(metric)

    timestamp = reading.timestamp.astimezone(timezone.utc)
    iso = timestamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return ";".join(
        [_value(reading.temperature), _value(reading.oxygen), _value(reading.ph), iso]
    )


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}


@router.post(
    "/leituras",
    status_code=status.HTTP_201_CREATED,
    response_model=ReadingResponse,
    summary="Store a sensor reading.",
)
def create_reading(
    payload: ReadingCreate,
    service: RecommendationService = Depends(get_service),
) -> ReadingResponse:
    try:
        reading = service.record_reading(
            payload.dispositivo_id,
            payload.temperatura,
            oxygen=payload.oxigenio,
            ph=payload.ph,
            timestamp=payload.data_hora,
        )
    except ValueError as exc:
        _bad_request(exc)
    except StoreError as exc:
        _store_failure(exc, "Internal error while storing reading.", payload.dispositivo_id)
    return ReadingResponse.from_reading(reading)


@router.get(
    "/leituras/latest/{device_id}",
    response_model=ReadingResponse,
    summary="Fetch the most recent reading of a device.",
)
def get_latest_reading(
    device_id: str,
    output_format: Optional[str] = Query(None, alias="format"),
    service: RecommendationService = Depends(get_service),
) -> Union[ReadingResponse, PlainTextResponse]:
    try:
        reading = service.latest_reading(device_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc.args[0]),
        ) from exc
    except ValueError as exc:
        _bad_request(exc)
    except StoreError as exc:
        _store_failure(exc, "Internal error while fetching the latest reading.", device_id)

    if output_format == "plain":
        return PlainTextResponse(_format_plain_reading(reading))
    return ReadingResponse.from_reading(reading)


@router.get(
    "/leituras/{device_id}",
    response_model=List[ReadingResponse],
    summary="List recent readings of a device, newest first.",
)
def list_readings(
    device_id: str,
    limit: Optional[str] = Query(None, description="Maximum rows (default 50, max 1000)."),
    service: RecommendationService = Depends(get_service),
) -> List[ReadingResponse]:
    try:
        readings = service.recent_readings(device_id, limit)
    except ValueError as exc:
        _bad_request(exc)
    except StoreError as exc:
        _store_failure(exc, "Internal error while listing readings.", device_id)
    return [ReadingResponse.from_reading(reading) for reading in readings]


def _recommendation(
    service: RecommendationService,
    device_id: Optional[str],
    days: Optional[str],
    output_format: Optional[str],
) -> Union[RecommendationResponse, PlainTextResponse]:
    try:
        result = service.get_recommendation(device_id, days)
    except ValueError as exc:
        _bad_request(exc)
    except StoreError as exc:
        _store_failure(exc, "Internal error while generating recommendation.", device_id)

    if output_format == "plain":
        return PlainTextResponse(result.texto)
    return result


@router.get(
    "/recomendacoes",
    response_model=RecommendationResponse,
    summary="Recommendation for the device given as a query parameter.",
)
def get_recommendation_by_query(
    dispositivo_id: Optional[str] = Query(None),
    days: Optional[str] = Query(None, description="Window in days (default 7, max 365)."),
    output_format: Optional[str] = Query(None, alias="format"),
    service: RecommendationService = Depends(get_service),
) -> Union[RecommendationResponse, PlainTextResponse]:
    return _recommendation(service, dispositivo_id, days, output_format)


@router.get(
    "/recomendacoes/{device_id}",
    response_model=RecommendationResponse,
    summary="Average recent readings and derive recommendations for a device.",
)
def get_recommendation(
    device_id: str,
    days: Optional[str] = Query(None, description="Window in days (default 7, max 365)."),
    output_format: Optional[str] = Query(None, alias="format"),
    service: RecommendationService = Depends(get_service),
) -> Union[RecommendationResponse, PlainTextResponse]:
    return _recommendation(service, device_id, days, output_format)


@router.get(
    "/recomendacoes/{device_id}/historico",
    response_model=List[RecommendationHistoryItem],
    summary="List persisted recommendations for a device, newest first.",
)
def get_recommendation_history(
    device_id: str,
    limit: Optional[str] = Query(None),
    service: RecommendationService = Depends(get_service),
) -> List[RecommendationHistoryItem]:
    try:
        records = service.history(device_id, limit)
    except ValueError as exc:
        _bad_request(exc)
    except StoreError as exc:
        _store_failure(exc, "Internal error while listing recommendations.", device_id)
    return [RecommendationHistoryItem.from_record(record) for record in records]
