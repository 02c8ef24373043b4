"""CLI entry point for the alert redelivery job."""

from __future__ import annotations

import argparse
import logging
import sys

from common.config import get_settings
from common.db import get_session_factory
from common.logging_config import configure_logging
from water_api.errors import CredentialMissing
from water_api.notifications import TelegramConfig, TelegramDispatcher

from .config import RedeliveryConfig
from .runner import run_once

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    configure_logging()

    p = argparse.ArgumentParser(description="Reenvía alertas no entregadas a Telegram")
    p.add_argument("--limit", type=int, default=100, help="máximo de alertas por ejecución")
    p.add_argument("--dry-run", action="store_true", help="solo listar, no enviar")
    args = p.parse_args(argv)

    settings = get_settings()
    cfg = RedeliveryConfig(
        limit=max(1, args.limit),
        default_chat_id=settings.telegram_default_chat_id,
        dry_run=bool(args.dry_run),
    )
    dispatcher = TelegramDispatcher(TelegramConfig.from_settings(settings))

    logger.info("Redelivery started limit=%d dry_run=%s", cfg.limit, cfg.dry_run)
    try:
        stats = run_once(get_session_factory(), dispatcher, cfg)
    except CredentialMissing as e:
        logger.error("Redelivery aborted: %s", e)
        return 2
    return 0 if stats.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
