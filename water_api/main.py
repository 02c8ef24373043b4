from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.config import get_settings
from common.db import get_engine
from common.logging_config import configure_logging
from common.schema import ensure_schema
from .endpoints import (
    devices_router,
    health_router,
    iot_ingest_router,
    telegram_test_router,
)
from .errors import InvalidPayload
from .schemas import error_envelope

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    if get_settings().auto_create_schema:
        ensure_schema(get_engine())
    yield


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Mismo sobre {success, data, error} que el resto de la API.
    logger.info("[API] Payload inválido path=%s errors=%s", request.url.path, len(exc.errors()))
    return JSONResponse(status_code=400, content=error_envelope(InvalidPayload.code))


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(
        title="Water Level Service",
        description="Ingesta de nivel de agua con alertas por Telegram.",
        version="0.1.0",
        lifespan=lifespan,
    )
    # El dashboard se sirve desde otro origen.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(health_router)
    app.include_router(iot_ingest_router)
    app.include_router(devices_router)
    app.include_router(telegram_test_router)
    return app


app = create_app()
