"""Flujo de ingesta de lecturas de nivel de agua.

Módulos:
- classification: clasificación LOW/HIGH/NORMAL/UNKNOWN
- device_registry: alta automática de dispositivos
- config_resolver: config de alertas (resolve / read / update)
- reading_store: persistencia de lecturas
- alert_recorder: alertas y texto de notificación
- coordinator: orquestador transaccional + envío post-COMMIT
"""

from .classification import classify_level, is_crossing
from .coordinator import IngestionCoordinator, IngestOutcome, IngestSettings, IngestState

__all__ = [
    "classify_level",
    "is_crossing",
    "IngestionCoordinator",
    "IngestOutcome",
    "IngestSettings",
    "IngestState",
]
