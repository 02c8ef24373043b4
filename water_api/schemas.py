from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WaterLevelIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    # Todo opcional: device_id y secret_key se validan en el coordinador
    # para devolver los códigos DEVICE_ID_REQUIRED / INVALID_SECRET_KEY.
    device_id: Optional[str] = None
    water_level_cm: Optional[float] = Field(default=None, allow_inf_nan=False)
    water_level_percent: Optional[float] = Field(default=None, allow_inf_nan=False)
    status: Optional[str] = None
    timestamp: Optional[datetime] = None
    secret_key: Optional[str] = None


class ReadingOut(BaseModel):
    id: int
    device_id: str
    water_level_cm: Optional[float] = None
    water_level_percent: Optional[float] = None
    status: str
    created_at: datetime


class DeviceRef(BaseModel):
    device_id: str
    name: str


class ResolvedConfigOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    min_level_percent: float = Field(..., alias="minLevelPercent")
    max_level_percent: float = Field(..., alias="maxLevelPercent")
    alert_enabled: bool = Field(..., alias="alertEnabled")
    device_chat_id: Optional[str] = Field(default=None, alias="deviceChatId")


class IngestData(BaseModel):
    reading: ReadingOut
    device: DeviceRef
    config: ResolvedConfigOut


class DeviceOut(BaseModel):
    id: int
    device_id: str
    name: str
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReadingsPage(BaseModel):
    items: List[ReadingOut] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    limit: int
    offset: int


class DeviceConfigOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    device_id: str = Field(..., alias="deviceId")
    min_level_percent: float = Field(..., alias="minLevelPercent")
    max_level_percent: float = Field(..., alias="maxLevelPercent")
    alert_enabled: bool = Field(..., alias="alertEnabled")
    telegram_chat_id: Optional[str] = Field(default=None, alias="telegramChatId")
    is_default: Optional[bool] = Field(default=None, alias="isDefault")


class DeviceConfigIn(BaseModel):
    # Los chat id de Telegram suelen llegar como número.
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    min_level_percent: Optional[float] = Field(
        default=None, alias="minLevelPercent", allow_inf_nan=False
    )
    max_level_percent: Optional[float] = Field(
        default=None, alias="maxLevelPercent", allow_inf_nan=False
    )
    alert_enabled: Optional[bool] = Field(default=None, alias="alertEnabled")
    telegram_chat_id: Optional[str] = Field(default=None, alias="telegramChatId")


class TelegramTestIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    chat_id: Optional[str] = Field(default=None, alias="chatId")
    text: Optional[str] = None


def envelope(data: Any = None) -> dict:
    """Sobre común de todas las respuestas: {success, data, error}."""
    return {"success": True, "data": data, "error": None}


def error_envelope(code: str) -> dict:
    return {"success": False, "data": None, "error": code}
