"""Envío de un mensaje de prueba a Telegram (debug de configuración)."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import get_dispatcher, get_ingest_settings
from ..errors import CredentialMissing, DispatchError
from ..ingest.coordinator import IngestSettings
from ..notifications import TelegramDispatcher
from ..schemas import TelegramTestIn, envelope, error_envelope

router = APIRouter(tags=["telegram"])
logger = logging.getLogger(__name__)

DEFAULT_TEST_TEXT = "✅ Mensaje de prueba del monitor de nivel de agua."


@router.post("/api/telegram/test")
def send_test_message(
    body: Optional[TelegramTestIn] = None,
    dispatcher: TelegramDispatcher = Depends(get_dispatcher),
    settings: IngestSettings = Depends(get_ingest_settings),
):
    """Si no se envía chatId/text se usan el chat por defecto y un texto fijo."""
    body = body or TelegramTestIn()
    chat_id = body.chat_id or settings.default_chat_id
    text = body.text or DEFAULT_TEST_TEXT

    if not chat_id:
        return JSONResponse(status_code=400, content=error_envelope("CHAT_ID_REQUIRED"))

    try:
        dispatcher.send(chat_id, text)
    except CredentialMissing as e:
        logger.error("[TELEGRAM] %s", e)
        return JSONResponse(status_code=500, content=error_envelope(str(e)))
    except DispatchError as e:
        logger.error("[TELEGRAM] Test message failed: %s", e)
        return JSONResponse(status_code=500, content=error_envelope("TELEGRAM_SEND_ERROR"))

    return envelope({"chatId": chat_id, "text": text})
