from __future__ import annotations

import logging

from .config import get_settings

_configured = False


def configure_logging(level: str | int | None = None) -> None:
    """Configura el logging del proceso una sola vez."""
    global _configured
    if _configured:
        return

    log_level = level if level is not None else get_settings().log_level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    _configured = True
