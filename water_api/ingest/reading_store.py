"""Persistencia de lecturas (append-only)."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import insert
from sqlalchemy.orm import Session

from common.schema import water_readings
from .models import StoredReading, to_utc


def append_reading(
    db: Session,
    device_id: str,
    level_cm: Optional[float],
    level_percent: Optional[float],
    status: str,
    observed_at: Optional[datetime] = None,
) -> StoredReading:
    """Inserta una lectura inmutable y devuelve su id y timestamp.

    Si el dispositivo no mandó timestamp (sin RTC) se usa la hora actual UTC.
    El timestamp del dispositivo se guarda convertido a UTC.
    """
    created_at = to_utc(observed_at) if observed_at is not None else datetime.now(timezone.utc)
    result = db.execute(
        insert(water_readings).values(
            device_id=device_id,
            water_level_cm=level_cm,
            water_level_percent=level_percent,
            status=status,
            created_at=created_at,
        )
    )
    reading_id = int(result.inserted_primary_key[0])
    return StoredReading(
        id=reading_id,
        device_id=device_id,
        water_level_cm=level_cm,
        water_level_percent=level_percent,
        status=status,
        created_at=created_at,
    )
