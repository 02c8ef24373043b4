"""Clasificación de una lectura contra los umbrales min/max del dispositivo."""

from __future__ import annotations

from typing import Optional

from .models import LevelStatus

CROSSING_STATUSES = frozenset({LevelStatus.LOW.value, LevelStatus.HIGH.value})


def classify_level(
    level_percent: Optional[float],
    reported_status: Optional[str],
    min_level: float,
    max_level: float,
) -> str:
    """Calcula el estado final de la lectura.

    Con porcentaje: LOW (< min), HIGH (> max) o NORMAL (min <= p <= max).
    Sin porcentaje: el estado crudo reportado por el dispositivo, o UNKNOWN.
    Función pura, nunca lanza.
    """
    if level_percent is None:
        return reported_status if reported_status else LevelStatus.UNKNOWN.value

    if level_percent < min_level:
        return LevelStatus.LOW.value
    if level_percent > max_level:
        return LevelStatus.HIGH.value
    return LevelStatus.NORMAL.value


def is_crossing(status: str) -> bool:
    """True si el estado dispara una alerta."""
    return status in CROSSING_STATUSES
