"""
Health check endpoints for the REST API.
Provides basic and detailed health status of the service and its database.
"""

import time

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shared.config.logging import rest_api_logger as logger
from shared.config.settings import settings
from shared.infrastructure.db import SessionLocal


router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
def health_check():
    """
    Basic health check endpoint.
    Returns service status without checking dependencies.
    """
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


def check_database_health() -> dict:
    """Run SELECT 1 and report status and latency."""
    started = time.perf_counter()
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database health check failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}
    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
    }


@router.get("/health/detailed")
def detailed_health_check():
    """
    Detailed health check that verifies connectivity to the database.

    Returns 503 Service Unavailable if it is down.
    """
    database = check_database_health()
    healthy = database["status"] == "healthy"
    checks = {
        "service": "rest-api",
        "environment": settings.environment,
        "status": "healthy" if healthy else "unhealthy",
        "dependencies": {"database": database},
    }
    if not healthy:
        return JSONResponse(content=checks, status_code=503)
    return checks
