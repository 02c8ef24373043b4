"""Dependencias FastAPI compartidas por los endpoints.

Se sobreescriben en tests con app.dependency_overrides.
"""

from __future__ import annotations

from typing import Iterator

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from common.config import get_settings
from common.db import get_session_factory as _get_session_factory
from .ingest.coordinator import IngestionCoordinator, IngestSettings
from .notifications import TelegramConfig, TelegramDispatcher


def get_session_factory() -> sessionmaker:
    return _get_session_factory()


def get_db(
    session_factory: sessionmaker = Depends(get_session_factory),
) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def get_ingest_settings() -> IngestSettings:
    return IngestSettings.from_settings(get_settings())


def get_dispatcher() -> TelegramDispatcher:
    return TelegramDispatcher(TelegramConfig.from_settings(get_settings()))


def get_coordinator(
    session_factory: sessionmaker = Depends(get_session_factory),
    dispatcher: TelegramDispatcher = Depends(get_dispatcher),
    settings: IngestSettings = Depends(get_ingest_settings),
) -> IngestionCoordinator:
    return IngestionCoordinator(session_factory, dispatcher, settings)
