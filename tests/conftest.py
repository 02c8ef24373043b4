"""Fixtures compartidas: BD SQLite por test, dispatcher falso y cliente HTTP."""

from __future__ import annotations

from typing import Callable, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from common.db import build_engine, build_session_factory
from common.schema import ensure_schema
from water_api.dependencies import get_dispatcher, get_ingest_settings, get_session_factory
from water_api.ingest.coordinator import IngestionCoordinator, IngestSettings
from water_api.main import create_app


class FakeDispatcher:
    """Dispatcher en memoria. Si `error` está definido, cada envío lo lanza."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.sent: List[Tuple[str, str]] = []
        self.attempts = 0

    def send(self, chat_id: str, text: str) -> None:
        self.attempts += 1
        if self.error is not None:
            raise self.error
        self.sent.append((chat_id, text))


def count_rows(engine: Engine, table) -> int:
    with engine.connect() as conn:
        return int(conn.execute(select(func.count()).select_from(table)).scalar_one())


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def engine(tmp_path) -> Engine:
    """BD SQLite en archivo, con el esquema creado."""
    eng = build_engine(f"sqlite:///{tmp_path / 'water_level_test.db'}")
    ensure_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return build_session_factory(engine)


@pytest.fixture
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def ingest_settings() -> IngestSettings:
    return IngestSettings(shared_secret=None, default_chat_id="default-chat")


@pytest.fixture
def coordinator(session_factory, dispatcher, ingest_settings) -> IngestionCoordinator:
    return IngestionCoordinator(session_factory, dispatcher, ingest_settings)


@pytest.fixture
def make_client(session_factory, dispatcher, ingest_settings) -> Callable[..., TestClient]:
    """Construye un TestClient con las dependencias apuntando a la BD de test."""

    def _make(
        settings: Optional[IngestSettings] = None,
        fake_dispatcher: Optional[FakeDispatcher] = None,
    ) -> TestClient:
        app = create_app()
        app.dependency_overrides[get_session_factory] = lambda: session_factory
        app.dependency_overrides[get_dispatcher] = lambda: fake_dispatcher or dispatcher
        app.dependency_overrides[get_ingest_settings] = lambda: settings or ingest_settings
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
