"""Endpoint de ingesta de telemetría de nivel de agua."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from ..dependencies import get_coordinator
from ..errors import StorageError
from ..ingest.coordinator import IngestionCoordinator, IngestOutcome
from ..schemas import (
    DeviceRef,
    IngestData,
    ReadingOut,
    ResolvedConfigOut,
    envelope,
    error_envelope,
)

router = APIRouter(prefix="/api/iot", tags=["ingest"])
logger = logging.getLogger(__name__)


def _to_response_data(outcome: IngestOutcome) -> dict:
    reading, config = outcome.reading, outcome.config
    data = IngestData(
        reading=ReadingOut(**reading.to_dict()),
        device=DeviceRef(device_id=outcome.device_id or "", name=outcome.device_name or ""),
        config=ResolvedConfigOut(
            min_level_percent=config.min_level_percent,
            max_level_percent=config.max_level_percent,
            alert_enabled=config.alert_enabled,
            device_chat_id=config.telegram_chat_id,
        ),
    )
    return data.model_dump(mode="json", by_alias=True)


@router.post("/water-level")
def ingest_water_level(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    coordinator: IngestionCoordinator = Depends(get_coordinator),
):
    """Recibe una lectura del sensor, la persiste y dispara la alerta si aplica.

    El body se valida en el coordinador (device_id, secreto, tipos).
    El resultado del envío a Telegram no forma parte de la respuesta.
    """
    try:
        outcome = coordinator.ingest(payload)
    except Exception as e:
        logger.exception("[INGEST] Error inesperado err=%s", type(e).__name__)
        return JSONResponse(status_code=500, content=error_envelope(StorageError.code))

    if outcome.error is not None:
        return JSONResponse(
            status_code=outcome.error.http_status,
            content=error_envelope(outcome.error.code),
        )

    return envelope(_to_response_data(outcome))
