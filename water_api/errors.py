"""Taxonomía de errores del servicio.

- ValidationError: payload rechazado antes de abrir transacción (4xx).
- StorageError: fallo de BD durante la fase transaccional (500, rollback completo).
- DispatchError: fallo al notificar; solo se loguea, nunca llega al cliente.
"""

from __future__ import annotations


class IngestError(Exception):
    """Error con código estable para el sobre {success, data, error}."""

    code: str = "IOT_ERROR"
    http_status: int = 500

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        if code is not None:
            self.code = code
        super().__init__(message or self.code)


class ValidationError(IngestError):
    http_status = 400


class DeviceIdRequired(ValidationError):
    code = "DEVICE_ID_REQUIRED"


class InvalidSecretKey(ValidationError):
    code = "INVALID_SECRET_KEY"
    http_status = 403


class InvalidPayload(ValidationError):
    code = "INVALID_PAYLOAD"


class StorageError(IngestError):
    # Código genérico: no se exponen detalles de la BD al cliente.
    code = "IOT_ERROR"
    http_status = 500


class DispatchError(Exception):
    """La notificación no pudo entregarse."""


class CredentialMissing(DispatchError):
    """No hay token del bot configurado (error de configuración, no transitorio)."""

    def __init__(self, message: str = "TELEGRAM_BOT_TOKEN_NOT_SET") -> None:
        super().__init__(message)
