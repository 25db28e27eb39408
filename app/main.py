from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api import router
from logging_config import configure_logging
from services.advisor import build_default_service


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    service = build_default_service()
    try:
        yield
    finally:
        service.shutdown()
        build_default_service.cache_clear()


async def _validation_error_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    # Body and query validation failures answer 400 instead of FastAPI's 422.
    # The rejected input is left out since NaN and inf cannot be encoded as JSON.
    errors = [{key: value for key, value in error.items() if key != "input"} for error in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(errors)},
    )


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Tank Telemetry Advisor",
        description="Aquaculture telemetry ingestion and threshold-based recommendations.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.include_router(router)
    return app


app = create_app()
