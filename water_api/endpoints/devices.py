"""Endpoints del dashboard: dispositivos, historial y configuración.

Envoltorios finos sobre la BD. Los errores devuelven INTERNAL_ERROR sin
exponer detalles de la excepción al cliente.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..dependencies import get_db
from ..ingest.config_resolver import ConfigChanges, read_config, update_config
from ..queries import devices as queries
from ..schemas import (
    DeviceConfigIn,
    DeviceConfigOut,
    DeviceOut,
    ReadingOut,
    ReadingsPage,
    envelope,
    error_envelope,
)

router = APIRouter(prefix="/api/devices", tags=["devices"])
logger = logging.getLogger(__name__)

INTERNAL_ERROR = "INTERNAL_ERROR"


def _internal_error() -> JSONResponse:
    return JSONResponse(status_code=500, content=error_envelope(INTERNAL_ERROR))


@router.get("")
def get_devices(db: Session = Depends(get_db)):
    try:
        rows = queries.list_devices(db)
    except SQLAlchemyError:
        logger.exception("[DASHBOARD] getDevices failed")
        return _internal_error()
    return envelope([DeviceOut(**r).model_dump(mode="json") for r in rows])


@router.get("/{device_id}/latest")
def get_latest_reading(device_id: str, db: Session = Depends(get_db)):
    try:
        row = queries.get_latest_reading(db, device_id)
    except SQLAlchemyError:
        logger.exception("[DASHBOARD] getLatestReading failed device_id=%s", device_id)
        return _internal_error()
    return envelope(ReadingOut(**row).model_dump(mode="json") if row else None)


@router.get("/{device_id}/readings")
def get_readings(
    device_id: str,
    date_from: Optional[datetime] = Query(default=None, alias="from"),
    date_to: Optional[datetime] = Query(default=None, alias="to"),
    limit: Optional[int] = Query(default=None),
    offset: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
):
    try:
        page = queries.get_readings_page(
            db,
            device_id,
            date_from=date_from,
            date_to=date_to,
            limit=limit,
            offset=offset,
        )
    except SQLAlchemyError:
        logger.exception("[DASHBOARD] getReadings failed device_id=%s", device_id)
        return _internal_error()
    return envelope(ReadingsPage(**page).model_dump(mode="json"))


@router.get("/{device_id}/config")
def get_config(device_id: str, db: Session = Depends(get_db)):
    """Config resuelta. Si no hay fila devuelve los defaults con isDefault=true."""
    try:
        values, is_default = read_config(db, device_id)
    except SQLAlchemyError:
        logger.exception("[DASHBOARD] getConfig failed device_id=%s", device_id)
        return _internal_error()

    out = DeviceConfigOut(
        device_id=device_id,
        min_level_percent=values.min_level_percent,
        max_level_percent=values.max_level_percent,
        alert_enabled=values.alert_enabled,
        telegram_chat_id=values.telegram_chat_id,
        is_default=is_default,
    )
    return envelope(out.model_dump(mode="json", by_alias=True))


@router.put("/{device_id}/config")
def put_config(device_id: str, body: DeviceConfigIn, db: Session = Depends(get_db)):
    """Edita la config; los campos no enviados conservan su valor actual."""
    changes = ConfigChanges.from_mapping(
        {name: getattr(body, name) for name in body.model_fields_set}
    )
    try:
        values = update_config(db, device_id, changes)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("[DASHBOARD] updateConfig failed device_id=%s", device_id)
        return _internal_error()

    out = DeviceConfigOut(
        device_id=device_id,
        min_level_percent=values.min_level_percent,
        max_level_percent=values.max_level_percent,
        alert_enabled=values.alert_enabled,
        telegram_chat_id=values.telegram_chat_id,
    )
    return envelope(out.model_dump(mode="json", by_alias=True, exclude={"is_default"}))
