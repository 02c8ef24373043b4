"""Esquema relacional del servicio de nivel de agua.

Tablas definidas con SQLAlchemy Core para que el mismo esquema funcione en
PostgreSQL (producción) y SQLite (desarrollo y tests).
"""

from __future__ import annotations

import logging

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    false,
    func,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

devices = Table(
    "devices",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("device_id", String(64), nullable=False, unique=True),
    Column("name", String(255), nullable=False),
    Column("location", String(255), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

# Sin FK hacia devices: la config puede escribirse desde el dashboard
# con un ciclo de vida independiente.
alert_config = Table(
    "alert_config",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("device_id", String(64), nullable=False, unique=True),
    Column("min_level_percent", Float, nullable=True),
    Column("max_level_percent", Float, nullable=True),
    Column("alert_enabled", Boolean, nullable=True),
    Column("telegram_chat_id", String(64), nullable=True),
    Column("updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()),
)

water_readings = Table(
    "water_readings",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("device_id", String(64), nullable=False),
    Column("water_level_cm", Float, nullable=True),
    Column("water_level_percent", Float, nullable=True),
    Column("status", String(32), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_water_readings_device_created", "device_id", "created_at"),
)

alerts = Table(
    "alerts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("device_id", String(64), nullable=False),
    Column("reading_id", Integer, ForeignKey("water_readings.id"), nullable=True),
    Column("alert_type", String(32), nullable=False),
    Column("message", Text, nullable=False),
    Column("sent_to_telegram", Boolean, nullable=False, server_default=false()),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Index("ix_alerts_pending", "sent_to_telegram", "created_at"),
)


def ensure_schema(engine: Engine) -> None:
    """Crea las tablas si no existen. Seguro de llamar varias veces."""
    logger.info("[DB] Ensuring schema exists")
    try:
        metadata.create_all(engine, checkfirst=True)
    except Exception as e:
        logger.exception("[DB] Schema creation failed: %s", e)
        raise
    logger.info("[DB] Schema ready")
