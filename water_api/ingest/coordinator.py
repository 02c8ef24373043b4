"""Coordinador de ingesta de nivel de agua.

Dos fases:
1. Durable (transaccional): dispositivo -> config -> clasificación ->
   lectura -> alerta. Todo o nada.
2. Aviso (post-COMMIT): envío a Telegram y marcado de la alerta como
   enviada. Su resultado solo queda reflejado en alerts.sent_to_telegram,
   nunca en la respuesta al dispositivo.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Protocol, Tuple, Union

from pydantic import ValidationError as PayloadValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from common.config import Settings
from ..errors import (
    DeviceIdRequired,
    DispatchError,
    IngestError,
    InvalidPayload,
    InvalidSecretKey,
    StorageError,
)
from ..schemas import WaterLevelIn
from .alert_recorder import mark_alert_delivered, record_alert, render_alert_message
from .classification import classify_level, is_crossing
from .config_resolver import resolve_config
from .device_registry import ensure_device
from .models import AlertConfigValues, AlertKind, PendingNotification, StoredReading
from .reading_store import append_reading

logger = logging.getLogger(__name__)


def _as_text(value: Any) -> Optional[str]:
    # Ids y secretos pueden llegar como número desde el firmware.
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    return None


class Dispatcher(Protocol):
    def send(self, chat_id: str, text: str) -> None: ...


class IngestState(Enum):
    VALIDATING = "validating"
    IN_TRANSACTION = "in_transaction"
    COMMITTED = "committed"
    NOTIFYING = "notifying"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class IngestSettings:
    """Valores de proceso inyectados al construir el coordinador."""

    shared_secret: Optional[str] = None
    default_chat_id: Optional[str] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "IngestSettings":
        return cls(
            shared_secret=settings.global_secret_key,
            default_chat_id=settings.telegram_default_chat_id,
        )


@dataclass
class IngestOutcome:
    """Resultado de una ingesta: éxito, error de validación o de almacenamiento."""

    state: IngestState
    error: Optional[IngestError] = None
    reading: Optional[StoredReading] = None
    device_id: Optional[str] = None
    device_name: Optional[str] = None
    config: Optional[AlertConfigValues] = None
    alert_id: Optional[int] = None
    notified: Optional[bool] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, error: IngestError) -> "IngestOutcome":
        return cls(state=IngestState.ABORTED, error=error)


@dataclass
class _DurableResult:
    reading: StoredReading
    device_name: str
    config: AlertConfigValues
    alert_id: Optional[int]
    pending: Optional[PendingNotification]


class IngestionCoordinator:
    """Orquesta la ingesta de una lectura bajo una única transacción."""

    def __init__(
        self,
        session_factory: sessionmaker,
        dispatcher: Dispatcher,
        settings: IngestSettings,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._settings = settings

    def ingest(self, payload: Union[WaterLevelIn, Mapping[str, Any], None]) -> IngestOutcome:
        """Procesa una lectura. Acepta el modelo ya validado o el body JSON crudo."""
        # VALIDATING: sin transacción abierta
        try:
            device_id, data = self._validate(payload)
        except IngestError as e:
            logger.info("[INGEST] Payload rechazado code=%s", e.code)
            return IngestOutcome.failed(e)

        # IN_TRANSACTION -> COMMITTED
        db: Session = self._session_factory()
        try:
            durable = self._run_durable_phase(db, device_id, data)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("[INGEST] DB error device_id=%s err=%s", device_id, type(e).__name__)
            return IngestOutcome.failed(StorageError(type(e).__name__))
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

        outcome = IngestOutcome(
            state=IngestState.COMMITTED,
            reading=durable.reading,
            device_id=device_id,
            device_name=durable.device_name,
            config=durable.config,
            alert_id=durable.alert_id,
        )

        if durable.pending is not None:
            outcome.state = IngestState.NOTIFYING
            outcome.notified = self._notify(durable.pending)

        outcome.state = IngestState.DONE
        return outcome

    def _validate(
        self, payload: Union[WaterLevelIn, Mapping[str, Any], None]
    ) -> Tuple[str, WaterLevelIn]:
        """device_id, luego secreto, luego tipos de los campos.

        device_id y secret_key se leen del body crudo: INVALID_PAYLOAD solo
        se responde a un dispositivo ya autenticado.
        """
        if isinstance(payload, WaterLevelIn):
            raw: Mapping[str, Any] = payload.model_dump()
        elif isinstance(payload, Mapping):
            raw = payload
        else:
            raw = {}

        device_id = _as_text(raw.get("device_id"))
        if device_id is None:
            raise DeviceIdRequired()

        expected = self._settings.shared_secret
        if expected:
            secret = raw.get("secret_key")
            submitted = secret if isinstance(secret, str) else (_as_text(secret) or "")
            if not hmac.compare_digest(submitted.encode("utf-8"), expected.encode("utf-8")):
                raise InvalidSecretKey()

        if isinstance(payload, WaterLevelIn):
            return device_id, payload
        try:
            return device_id, WaterLevelIn.model_validate(raw)
        except PayloadValidationError as e:
            raise InvalidPayload(f"{e.error_count()} campos inválidos") from e

    def _run_durable_phase(
        self,
        db: Session,
        device_id: str,
        payload: WaterLevelIn,
    ) -> _DurableResult:
        # El dispositivo va primero: el resto de pasos ve una fila consistente.
        device_name = ensure_device(db, device_id)
        config = resolve_config(db, device_id)

        status = classify_level(
            payload.water_level_percent,
            payload.status,
            config.min_level_percent,
            config.max_level_percent,
        )

        reading = append_reading(
            db,
            device_id=device_id,
            level_cm=payload.water_level_cm,
            level_percent=payload.water_level_percent,
            status=status,
            observed_at=payload.timestamp,
        )

        alert_id: Optional[int] = None
        pending: Optional[PendingNotification] = None
        kind = AlertKind.for_status(status)
        if is_crossing(status) and kind is not None:
            text = render_alert_message(
                kind,
                device_name=device_name,
                device_id=device_id,
                level_percent=payload.water_level_percent,
                min_level=config.min_level_percent,
                max_level=config.max_level_percent,
            )
            alert_id = record_alert(
                db,
                device_id=device_id,
                reading_id=reading.id,
                kind=kind,
                message=text,
                observed_at=reading.created_at,
            )
            chat_id = config.telegram_chat_id or self._settings.default_chat_id
            if chat_id:
                pending = PendingNotification(alert_id=alert_id, text=text, chat_id=chat_id)
            else:
                logger.warning(
                    "[INGEST] Alerta %s sin chat destino device_id=%s", alert_id, device_id
                )

        logger.info(
            "[INGEST] Lectura registrada device_id=%s reading_id=%s status=%s",
            device_id,
            reading.id,
            status,
        )
        return _DurableResult(
            reading=reading,
            device_name=device_name,
            config=config,
            alert_id=alert_id,
            pending=pending,
        )

    def _notify(self, pending: PendingNotification) -> bool:
        """Envía la alerta ya confirmada. Nunca lanza."""
        try:
            self._dispatcher.send(pending.chat_id, pending.text)
        except DispatchError as e:
            logger.error("[TELEGRAM] Error enviando alerta alert_id=%s: %s", pending.alert_id, e)
            return False
        except Exception as e:
            logger.exception(
                "[TELEGRAM] Error inesperado enviando alerta alert_id=%s: %s", pending.alert_id, e
            )
            return False

        # Escritura independiente y best-effort: la respuesta ya no depende de ella.
        db: Session = self._session_factory()
        try:
            mark_alert_delivered(db, pending.alert_id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning(
                "[DB] No se pudo marcar alert_id=%s como enviada err=%s",
                pending.alert_id,
                type(e).__name__,
            )
        finally:
            db.close()
        return True
