"""Health and readiness endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..dependencies import get_db
from ..queries.devices import count_devices
from ..schemas import envelope, error_envelope

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health():
    """Liveness: responde OK mientras el proceso esté vivo."""
    return envelope("OK")


@router.get("/ready")
def ready(db: Session = Depends(get_db)):
    """Readiness: verifica la conexión a la base de datos."""
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("[DB] Readiness check failed")
        return JSONResponse(status_code=503, content=error_envelope("NOT_READY"))
    return envelope({"status": "ready"})


@router.get("/db-test")
def db_test(db: Session = Depends(get_db)):
    """Cuenta dispositivos; útil para comprobar la conexión desde el navegador."""
    try:
        count = count_devices(db)
    except SQLAlchemyError:
        # No exponer detalles del error al cliente, solo loguear internamente
        logger.exception("[DB] db-test failed")
        return JSONResponse(status_code=500, content=error_envelope("DB_TEST_ERROR"))
    return envelope({"deviceCount": count})
