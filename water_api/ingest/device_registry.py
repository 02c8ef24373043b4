"""Registro de dispositivos: alta automática en el primer contacto."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import insert, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from common.schema import devices

logger = logging.getLogger(__name__)


def default_device_name(device_id: str) -> str:
    return f"Device {device_id}"


def _select_device_name(db: Session, device_id: str) -> Optional[str]:
    row = db.execute(
        text("SELECT id, name FROM devices WHERE device_id = :device_id"),
        {"device_id": device_id},
    ).fetchone()
    return str(row.name) if row else None


def ensure_device(db: Session, device_id: str) -> str:
    """Garantiza que el dispositivo existe y devuelve su nombre.

    Corre dentro de la transacción del llamador y debe ser el primer paso
    por dispositivo. Si dos requests concurrentes intentan el alta, el que
    pierde choca con el UNIQUE de device_id dentro de un SAVEPOINT y relee
    la fila en vez de abortar.

    Args:
        db: Sesión con la transacción de ingesta abierta
        device_id: Identificador externo del dispositivo

    Returns:
        Nombre almacenado (o el nombre por defecto recién creado)
    """
    name = _select_device_name(db, device_id)
    if name is not None:
        return name

    name = default_device_name(device_id)
    try:
        with db.begin_nested():
            db.execute(
                insert(devices).values(device_id=device_id, name=name, location="")
            )
    except IntegrityError:
        logger.info("[DEVICE] Alta concurrente de device_id=%s, releyendo", device_id)
        existing = _select_device_name(db, device_id)
        if existing is None:
            raise
        return existing

    logger.info("[DEVICE] Nuevo dispositivo registrado device_id=%s", device_id)
    return name
