from __future__ import annotations

from functools import lru_cache
import logging

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import sessionmaker

from .config import Settings, get_settings


logger = logging.getLogger(__name__)


def _enable_sqlite_savepoints(engine: Engine) -> None:
    # pysqlite gestiona BEGIN por su cuenta y rompe los SAVEPOINT;
    # se desactiva y SQLAlchemy emite el BEGIN explícitamente.
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: str, *, pool_size: int = 5) -> Engine:
    url = make_url(database_url)

    # Log básico de parámetros de conexión (sin contraseña)
    logger.info(
        "[DB] Crear engine driver=%s host=%s db=%s",
        url.drivername,
        url.host,
        url.database,
    )

    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            future=True,
            connect_args={"check_same_thread": False},
        )
        _enable_sqlite_savepoints(engine)
        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=pool_size,
        future=True,
    )


@lru_cache
def get_engine() -> Engine:
    settings: Settings = get_settings()
    engine = build_engine(settings.database_url, pool_size=settings.db_pool_size)

    # Test de conexión: ayuda a ver en logs si el servicio realmente llega a la BD
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("[DB] Test de conexión OK")
    except Exception:
        logger.exception("[DB] Test de conexión FALLÓ")

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, future=True)


@lru_cache
def get_session_factory() -> sessionmaker:
    return build_session_factory(get_engine())

