"""Resolución de la configuración de alertas por dispositivo.

- resolve_config: usado por la ingesta, crea la fila con defaults si falta.
- read_config: solo lectura, para el dashboard (no persiste nada).
- update_config: edición desde el dashboard, mismas reglas de defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from sqlalchemy import func, insert, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from common.schema import alert_config
from .device_registry import ensure_device
from .models import AlertConfigValues

logger = logging.getLogger(__name__)

_UNSET: Any = object()


def _select_config_row(db: Session, device_id: str) -> Any:
    return db.execute(
        text(
            """
            SELECT id, min_level_percent, max_level_percent, alert_enabled, telegram_chat_id
            FROM alert_config
            WHERE device_id = :device_id
            """
        ),
        {"device_id": device_id},
    ).fetchone()


def resolve_config(db: Session, device_id: str) -> AlertConfigValues:
    """Carga la config del dispositivo o la crea con los defaults del sistema.

    Idempotente entre requests. Igual que ensure_device, un alta concurrente
    se resuelve releyendo la fila ganadora.
    """
    row = _select_config_row(db, device_id)
    if row is not None:
        return AlertConfigValues.from_row(row)

    values = AlertConfigValues.defaults()
    try:
        with db.begin_nested():
            db.execute(
                insert(alert_config).values(
                    device_id=device_id,
                    min_level_percent=values.min_level_percent,
                    max_level_percent=values.max_level_percent,
                    alert_enabled=values.alert_enabled,
                )
            )
    except IntegrityError:
        logger.info("[CONFIG] Alta concurrente de config device_id=%s, releyendo", device_id)
        row = _select_config_row(db, device_id)
        if row is None:
            raise
        return AlertConfigValues.from_row(row)

    logger.debug("[CONFIG] Config por defecto creada device_id=%s", device_id)
    return values


def read_config(db: Session, device_id: str) -> Tuple[AlertConfigValues, bool]:
    """Devuelve (config, is_default) sin escribir nada."""
    row = _select_config_row(db, device_id)
    if row is None:
        return AlertConfigValues.defaults(), True
    return AlertConfigValues.from_row(row), False


@dataclass
class ConfigChanges:
    """Campos enviados por el dashboard. _UNSET = no enviado."""

    min_level_percent: Optional[float] = field(default=_UNSET)
    max_level_percent: Optional[float] = field(default=_UNSET)
    alert_enabled: Optional[bool] = field(default=_UNSET)
    telegram_chat_id: Optional[str] = field(default=_UNSET)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ConfigChanges":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


def _pick(sent: Any, stored: Any, default: Any) -> Any:
    # Para umbrales y flag, un null explícito equivale a "no enviado".
    if sent is not _UNSET and sent is not None:
        return sent
    return stored if stored is not None else default


def _merge(changes: ConfigChanges, row: Any) -> AlertConfigValues:
    defaults = AlertConfigValues.defaults()
    stored_min = row.min_level_percent if row is not None else None
    stored_max = row.max_level_percent if row is not None else None
    stored_enabled = row.alert_enabled if row is not None else None
    stored_chat = row.telegram_chat_id if row is not None else None

    # El chat id sí admite null explícito para borrarlo.
    chat_id = stored_chat if changes.telegram_chat_id is _UNSET else changes.telegram_chat_id

    return AlertConfigValues(
        min_level_percent=float(
            _pick(changes.min_level_percent, stored_min, defaults.min_level_percent)
        ),
        max_level_percent=float(
            _pick(changes.max_level_percent, stored_max, defaults.max_level_percent)
        ),
        alert_enabled=bool(_pick(changes.alert_enabled, stored_enabled, defaults.alert_enabled)),
        telegram_chat_id=str(chat_id) if chat_id is not None else None,
    )


def _columns(values: AlertConfigValues) -> dict:
    return {
        "min_level_percent": values.min_level_percent,
        "max_level_percent": values.max_level_percent,
        "alert_enabled": values.alert_enabled,
        "telegram_chat_id": values.telegram_chat_id,
    }


def update_config(db: Session, device_id: str, changes: ConfigChanges) -> AlertConfigValues:
    """Aplica una edición de config (UPDATE o INSERT) dentro de la transacción del llamador.

    Si otra request crea la fila entre la lectura y el INSERT, la edición se
    vuelve a calcular sobre la fila ganadora y se aplica como UPDATE.
    """
    ensure_device(db, device_id)

    row = _select_config_row(db, device_id)
    values = _merge(changes, row)

    if row is None:
        try:
            with db.begin_nested():
                db.execute(insert(alert_config).values(device_id=device_id, **_columns(values)))
        except IntegrityError:
            logger.info("[CONFIG] Alta concurrente de config device_id=%s, actualizando", device_id)
            row = _select_config_row(db, device_id)
            if row is None:
                raise
            values = _merge(changes, row)

    if row is not None:
        db.execute(
            update(alert_config)
            .where(alert_config.c.device_id == device_id)
            .values(**_columns(values), updated_at=func.now())
        )

    logger.info(
        "[CONFIG] Config actualizada device_id=%s min=%s max=%s enabled=%s",
        device_id,
        values.min_level_percent,
        values.max_level_percent,
        values.alert_enabled,
    )
    return values
