"""Redelivery job configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RedeliveryConfig:
    """Configuración del reenvío de alertas pendientes."""
    limit: int
    default_chat_id: Optional[str]
    dry_run: bool = False
