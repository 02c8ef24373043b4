"""Consultas de solo lectura para el dashboard."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from common.schema import devices, water_readings
from ..ingest.models import to_utc

MAX_PAGE_SIZE = 1000
DEFAULT_PAGE_SIZE = 100

_READING_COLUMNS = (
    water_readings.c.id,
    water_readings.c.device_id,
    water_readings.c.water_level_cm,
    water_readings.c.water_level_percent,
    water_readings.c.status,
    water_readings.c.created_at,
)


def list_devices(db: Session) -> List[Dict[str, Any]]:
    rows = db.execute(select(devices).order_by(devices.c.id.asc())).mappings().all()
    return [dict(r) for r in rows]


def count_devices(db: Session) -> int:
    return int(db.execute(select(func.count()).select_from(devices)).scalar_one())


def get_latest_reading(db: Session, device_id: str) -> Optional[Dict[str, Any]]:
    row = (
        db.execute(
            select(*_READING_COLUMNS)
            .where(water_readings.c.device_id == device_id)
            .order_by(water_readings.c.created_at.desc(), water_readings.c.id.desc())
            .limit(1)
        )
        .mappings()
        .first()
    )
    return dict(row) if row else None


def clamp_page(limit: Optional[int], offset: Optional[int]) -> tuple[int, int]:
    """Normaliza la paginación: limit en [1, 1000] (100 por defecto), offset >= 0."""
    take = limit if limit and limit > 0 else DEFAULT_PAGE_SIZE
    take = min(take, MAX_PAGE_SIZE)
    skip = offset if offset and offset > 0 else 0
    return take, skip


def get_readings_page(
    db: Session,
    device_id: str,
    *,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: Optional[int] = None,
    offset: Optional[int] = None,
) -> Dict[str, Any]:
    """Historial de lecturas, más recientes primero, con total para paginar."""
    take, skip = clamp_page(limit, offset)

    conditions = [water_readings.c.device_id == device_id]
    if date_from is not None:
        conditions.append(water_readings.c.created_at >= to_utc(date_from))
    if date_to is not None:
        conditions.append(water_readings.c.created_at <= to_utc(date_to))

    items = (
        db.execute(
            select(*_READING_COLUMNS)
            .where(*conditions)
            .order_by(water_readings.c.created_at.desc(), water_readings.c.id.desc())
            .limit(take)
            .offset(skip)
        )
        .mappings()
        .all()
    )
    total = db.execute(
        select(func.count()).select_from(water_readings).where(*conditions)
    ).scalar_one()

    return {
        "items": [dict(r) for r in items],
        "total": int(total),
        "limit": take,
        "offset": skip,
    }
