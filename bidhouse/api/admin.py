"""
Admin API Routes - Monitoring and Management
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from bidhouse.core.config import get_settings
from bidhouse.infrastructure.database import get_db, init_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])


@router.post("/admin/init-db")
def initialize_database(db: Session = Depends(get_db)):
    """Create any missing tables"""
    init_db(db.get_bind())
    return {"success": True, "message": "Database initialized"}


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    """System health check"""
    settings = get_settings()
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except DBAPIError as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "unhealthy"
    finally:
        db.rollback()

    body = {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "components": {"database": db_status},
    }
    return JSONResponse(status_code=200 if db_status == "healthy" else 503, content=body)
