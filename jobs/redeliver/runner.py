"""Reenvío de alertas con sent_to_telegram = false.

No forma parte de la ingesta: se ejecuta a mano (o desde el scheduler del
operador). Cada alerta se marca en su propia transacción.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from water_api.errors import CredentialMissing, DispatchError
from water_api.ingest.alert_recorder import list_undelivered_alerts, mark_alert_delivered
from water_api.ingest.coordinator import Dispatcher

from .config import RedeliveryConfig

logger = logging.getLogger(__name__)


@dataclass
class RedeliveryStats:
    scanned: int = 0
    delivered: int = 0
    failed: int = 0
    skipped_no_target: int = 0


def run_once(
    session_factory: sessionmaker,
    dispatcher: Dispatcher,
    cfg: RedeliveryConfig,
) -> RedeliveryStats:
    """Intenta entregar una tanda de alertas pendientes (más antiguas primero)."""
    stats = RedeliveryStats()

    with session_factory() as db:
        pending = list_undelivered_alerts(db, limit=cfg.limit)
    stats.scanned = len(pending)

    for alert in pending:
        alert_id = int(alert["id"])
        chat_id = alert.get("telegram_chat_id") or cfg.default_chat_id
        if not chat_id:
            stats.skipped_no_target += 1
            continue
        if cfg.dry_run:
            logger.info("[REDELIVER] dry-run alert_id=%s chat_id=%s", alert_id, chat_id)
            continue

        try:
            dispatcher.send(str(chat_id), alert["message"])
        except CredentialMissing:
            # Sin token no tiene sentido seguir con el resto de la tanda.
            raise
        except DispatchError as e:
            stats.failed += 1
            logger.warning("[REDELIVER] Envío fallido alert_id=%s: %s", alert_id, e)
            continue

        try:
            with session_factory() as db:
                mark_alert_delivered(db, alert_id)
                db.commit()
        except SQLAlchemyError as e:
            stats.failed += 1
            logger.error("[REDELIVER] No se pudo marcar alert_id=%s err=%s", alert_id, type(e).__name__)
            continue
        stats.delivered += 1

    logger.info(
        "[REDELIVER] scanned=%d delivered=%d failed=%d no_target=%d",
        stats.scanned,
        stats.delivered,
        stats.failed,
        stats.skipped_no_target,
    )
    return stats
