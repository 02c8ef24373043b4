"""Modelos de datos del flujo de ingesta.

Dataclasses que viajan entre los pasos de la transacción de ingesta.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

DEFAULT_MIN_LEVEL_PERCENT = 20.0
DEFAULT_MAX_LEVEL_PERCENT = 90.0
DEFAULT_ALERT_ENABLED = True


def to_utc(value: datetime) -> datetime:
    """Normaliza a UTC. Un timestamp sin zona se interpreta como UTC.

    SQLite guarda DateTime sin offset: todo lo que se persiste o se compara
    contra created_at tiene que estar en la misma zona.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LevelStatus(str, Enum):
    """Estado calculado de una lectura."""

    LOW = "LOW"
    HIGH = "HIGH"
    NORMAL = "NORMAL"
    UNKNOWN = "UNKNOWN"


class AlertKind(str, Enum):
    """Tipo de alerta persistido en alerts.alert_type."""

    LOW = "LOW_LEVEL"
    HIGH = "HIGH_LEVEL"

    @classmethod
    def for_status(cls, status: str) -> Optional["AlertKind"]:
        if status == LevelStatus.LOW.value:
            return cls.LOW
        if status == LevelStatus.HIGH.value:
            return cls.HIGH
        return None


@dataclass(frozen=True)
class AlertConfigValues:
    """Configuración de alertas ya resuelta (con defaults aplicados)."""

    min_level_percent: float = DEFAULT_MIN_LEVEL_PERCENT
    max_level_percent: float = DEFAULT_MAX_LEVEL_PERCENT
    alert_enabled: bool = DEFAULT_ALERT_ENABLED
    telegram_chat_id: Optional[str] = None

    @classmethod
    def defaults(cls) -> "AlertConfigValues":
        return cls()

    @classmethod
    def from_row(cls, row: Any) -> "AlertConfigValues":
        """Sustituye por el default cada campo NULL (salvo el chat id)."""
        min_level = row.min_level_percent
        max_level = row.max_level_percent
        enabled = row.alert_enabled
        chat_id = row.telegram_chat_id
        return cls(
            min_level_percent=(
                float(min_level) if min_level is not None else DEFAULT_MIN_LEVEL_PERCENT
            ),
            max_level_percent=(
                float(max_level) if max_level is not None else DEFAULT_MAX_LEVEL_PERCENT
            ),
            alert_enabled=bool(enabled) if enabled is not None else DEFAULT_ALERT_ENABLED,
            telegram_chat_id=str(chat_id) if chat_id is not None else None,
        )


@dataclass(frozen=True)
class StoredReading:
    """Lectura inmutable tal como quedó persistida."""

    id: int
    device_id: str
    water_level_cm: Optional[float]
    water_level_percent: Optional[float]
    status: str
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "device_id": self.device_id,
            "water_level_cm": self.water_level_cm,
            "water_level_percent": self.water_level_percent,
            "status": self.status,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class PendingNotification:
    """Alerta a enviar después del COMMIT."""

    alert_id: int
    text: str
    chat_id: str
