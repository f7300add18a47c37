"""
Health check endpoint for the REST API.
Reports database connectivity and realtime connection counts.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.config.logging import rest_api_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import get_db
from ws_gateway.connection_manager import FanoutHub, get_hub


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check(db: Session = Depends(get_db), hub: FanoutHub = Depends(get_hub)):
    """
    Liveness plus dependency status.
    Returns 503 when the database is unreachable.
    """
    checks = {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
        "database": {"status": "healthy"},
        "realtime": hub.get_stats(),
    }

    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check: database unreachable", error=str(e))
        checks["database"] = {"status": "unhealthy", "error": str(e)}
        checks["status"] = "degraded"
        return JSONResponse(content=checks, status_code=503)

    return checks
