"""Registro de alertas de nivel y texto de la notificación.

El texto se genera en el momento de crear la alerta y se guarda tal cual,
así el job de reenvío manda exactamente el mismo mensaje.
"""

from __future__ import annotations

import html
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import insert, text
from sqlalchemy.orm import Session

from common.schema import alerts
from .models import AlertKind, to_utc

logger = logging.getLogger(__name__)

_HEADERS = {
    AlertKind.HIGH: "🚨 ALERTA: NIVEL DE AGUA ALTO 🚨",
    AlertKind.LOW: "⚠️ Alerta de nivel de agua bajo",
}

# Empiezan con salto de línea: dejan una línea en blanco antes de la sugerencia.
_ACTION_HINTS = {
    AlertKind.HIGH: "\n➡️ Revise de inmediato la zona, hay riesgo de desborde o inundación.",
    AlertKind.LOW: "\n➡️ Revise la fuente de agua; puede hacer falta bombear o atender una falta de suministro.",
}


def _format_number(value: float) -> str:
    return f"{value:g}"


def render_alert_message(
    kind: AlertKind,
    device_name: str,
    device_id: str,
    level_percent: Optional[float],
    min_level: float,
    max_level: float,
) -> str:
    """Arma el mensaje de la alerta según su tipo. Determinista.

    Se envía con parse_mode=HTML: nombre e id del dispositivo van escapados.
    """
    level_text = f"{level_percent:.1f}%" if level_percent is not None else "desconocido"
    lines = [
        _HEADERS[kind],
        "",
        f"📍 Dispositivo: {html.escape(device_name)} ({html.escape(device_id)})",
        f"💧 Nivel actual: {level_text}",
        f"📊 Umbrales configurados: min = {_format_number(min_level)}% · "
        f"max = {_format_number(max_level)}%",
        _ACTION_HINTS[kind],
    ]
    return "\n".join(line for line in lines if line != "")


def record_alert(
    db: Session,
    device_id: str,
    reading_id: int,
    kind: AlertKind,
    message: str,
    observed_at: datetime,
) -> int:
    """Inserta la alerta con sent_to_telegram = false y devuelve su id."""
    result = db.execute(
        insert(alerts).values(
            device_id=device_id,
            reading_id=reading_id,
            alert_type=kind.value,
            message=message,
            sent_to_telegram=False,
            created_at=to_utc(observed_at),
        )
    )
    alert_id = int(result.inserted_primary_key[0])
    logger.info(
        "[ALERT] %s registrada alert_id=%s device_id=%s reading_id=%s",
        kind.value,
        alert_id,
        device_id,
        reading_id,
    )
    return alert_id


def mark_alert_delivered(db: Session, alert_id: int) -> None:
    """Marca la alerta como enviada. El flag nunca vuelve a false."""
    db.execute(
        text("UPDATE alerts SET sent_to_telegram = :sent WHERE id = :alert_id"),
        {"sent": True, "alert_id": alert_id},
    )


def list_undelivered_alerts(db: Session, limit: int = 100) -> List[dict]:
    """Alertas pendientes de envío, más antiguas primero, con el chat del dispositivo."""
    rows = db.execute(
        text(
            """
            SELECT a.id, a.device_id, a.message, c.telegram_chat_id
            FROM alerts a
            LEFT JOIN alert_config c ON c.device_id = a.device_id
            WHERE a.sent_to_telegram = :sent
            ORDER BY a.created_at ASC, a.id ASC
            LIMIT :limit
            """
        ),
        {"sent": False, "limit": int(limit)},
    ).mappings().all()
    return [dict(r) for r in rows]
