# backend/api_gateway/routes/health.py
"""
Health check: estado de la API y conectividad con la base de datos
"""
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.settings import get_settings
from shared.database.base import get_db
from shared.utils.logger import setup_logger

logger = setup_logger(__name__)
settings = get_settings()

router = APIRouter()


@router.get("", summary="Estado de la API")
def health_check(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error(f"Health check: base de datos no disponible: {str(e)}")
        database = "unavailable"

    healthy = database == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "success" if healthy else "error",
            "data": {
                "app": settings.APP_NAME,
                "version": settings.APP_VERSION,
                "database": database,
            },
        },
    )
