from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


def _default_env_file() -> str:
    # .env en el directorio de trabajo, si existe.
    return str(Path.cwd() / ".env")


def _read_optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_float(name: str, default: float) -> float:
    value = _read_optional(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_int(name: str, default: int) -> int:
    value = _read_optional(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_bool(name: str, default: bool) -> bool:
    value = _read_optional(name)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str
    db_pool_size: int

    global_secret_key: Optional[str]

    telegram_bot_token: Optional[str]
    telegram_default_chat_id: Optional[str]
    telegram_api_base: str
    telegram_timeout_seconds: float

    auto_create_schema: bool
    log_level: str


@lru_cache
def get_settings() -> Settings:
    # Carga el .env (si existe) sin pisar variables reales del entorno.
    env_file = os.getenv("WATER_ENV_FILE", _default_env_file())
    if env_file and Path(env_file).exists():
        load_dotenv(env_file, override=False)

    return Settings(
        database_url=_read_optional("DATABASE_URL") or "sqlite:///./water_level.db",
        db_pool_size=_read_int("DB_POOL_SIZE", 5),
        global_secret_key=_read_optional("GLOBAL_SECRET_KEY"),
        telegram_bot_token=_read_optional("TELEGRAM_BOT_TOKEN"),
        telegram_default_chat_id=_read_optional("TELEGRAM_DEFAULT_CHAT_ID"),
        telegram_api_base=(
            _read_optional("TELEGRAM_API_BASE") or "https://api.telegram.org"
        ).rstrip("/"),
        telegram_timeout_seconds=_read_float("TELEGRAM_TIMEOUT_SECONDS", 10.0),
        auto_create_schema=_read_bool("AUTO_CREATE_SCHEMA", True),
        log_level=(_read_optional("LOG_LEVEL") or "INFO").upper(),
    )
