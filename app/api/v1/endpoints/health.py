# app/api/v1/endpoints/health.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime, timezone
import logging

from app.db.session import get_db

router = APIRouter()
logger = logging.getLogger('app.api.health')


@router.get("/health", summary="Verifica el estado del servicio")
def check_health(db: Session = Depends(get_db)):
    """
    Endpoint de Health Check.
    Verifica que la API está activa y la conexión a base de datos.
    """
    health_status = {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": {"status": "unknown"},
        }
    }

    # Verificar conexión a base de datos
    try:
        db.execute(text("SELECT 1"))
        health_status["services"]["database"] = {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error(f"Health check: base de datos no disponible: {e}")
        health_status["services"]["database"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "unhealthy"
        return JSONResponse(status_code=503, content=health_status)

    return health_status
