"""Canales de notificación externos."""

from .telegram import TelegramConfig, TelegramDispatcher

__all__ = [
    "TelegramConfig",
    "TelegramDispatcher",
]
