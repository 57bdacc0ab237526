"""
Health check endpoints
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
from outage_monitor.core.config import settings
from outage_monitor.database.connection import get_database
import structlog

logger = structlog.get_logger(__name__)
router = APIRouter()

@router.get("/health")
def health_check():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "Outage Monitor API",
        "version": "1.0.0"
    }

@router.get("/health/detailed")
def detailed_health_check(db: Session = Depends(get_database)):
    """Detailed health check with database connectivity"""
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        db_status = "disconnected"

    return {
        "status": "healthy" if db_status == "connected" else "unhealthy",
        "database": db_status,
        "telegram": "configured" if settings.telegram_configured else "not configured",
        "service": "Outage Monitor API",
        "version": "1.0.0"
    }
