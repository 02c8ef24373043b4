from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from common.config import Settings
from ..errors import CredentialMissing, DispatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TelegramConfig:
    """
    Configuración del bot de Telegram.

    bot_token
        Token del bot. Si falta, el primer envío falla con CredentialMissing.
    api_base
        URL base de la Bot API.
    timeout_s
        Timeout HTTP en segundos.
    """

    bot_token: Optional[str]
    api_base: str = "https://api.telegram.org"
    timeout_s: float = 10.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramConfig":
        return cls(
            bot_token=settings.telegram_bot_token,
            api_base=settings.telegram_api_base,
            timeout_s=settings.telegram_timeout_seconds,
        )


class TelegramDispatcher:
    """
    Envía mensajes de texto a un chat de Telegram vía sendMessage.

    Notas
    -----
    - Hace I/O de red; se invoca fuera de cualquier transacción.
    - No reintenta: cualquier fallo se propaga como DispatchError.
    """

    def __init__(self, cfg: TelegramConfig):
        self._cfg = cfg

    def send(self, chat_id: str, text: str) -> None:
        """
        Entrega ``text`` al chat ``chat_id``.

        Raises
        ------
        CredentialMissing
            Si no hay token configurado.
        DispatchError
            Si el chat es inválido, la red falla o Telegram responde error.
        """
        token = self._cfg.bot_token
        if not token:
            raise CredentialMissing()
        if not chat_id:
            raise DispatchError("CHAT_ID_REQUIRED")

        url = f"{self._cfg.api_base}/bot{token}/sendMessage"
        try:
            r = requests.post(
                url,
                json={"chat_id": chat_id, "text": text, "parse_mode": "HTML"},
                timeout=self._cfg.timeout_s,
            )
            r.raise_for_status()
        except requests.RequestException as e:
            # El token va en la URL: no se loguea la excepción cruda.
            logger.warning("[TELEGRAM] Envío fallido chat_id=%s err=%s", chat_id, type(e).__name__)
            raise DispatchError(f"TELEGRAM_SEND_ERROR: {type(e).__name__}") from e

        try:
            body = r.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("ok") is False:
            description = body.get("description") or "unknown error"
            raise DispatchError(f"TELEGRAM_SEND_ERROR: {description}")

        logger.info("[TELEGRAM] Mensaje enviado chat_id=%s", chat_id)
