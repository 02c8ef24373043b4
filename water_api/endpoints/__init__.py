"""Módulo de endpoints HTTP.

Contiene todos los endpoints de la API organizados por función.
"""

from .health import router as health_router
from .iot_ingest import router as iot_ingest_router
from .devices import router as devices_router
from .telegram_test import router as telegram_test_router

__all__ = [
    "health_router",
    "iot_ingest_router",
    "devices_router",
    "telegram_test_router",
]
