"""
Health check endpoints.
"""
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from datetime import datetime

from bed_allocation.config import settings
from bed_allocation.core.database import check_database_health
from bed_allocation.core.websocket_manager import manager

router = APIRouter(
    prefix="/health",
    tags=["health"],
    responses={
        200: {"description": "Service healthy"},
        503: {"description": "Service unavailable"}
    }
)


@router.get(
    "",
    summary="General Health Check",
    description="Checks that the application is running",
    response_model=None
)
async def health_check() -> JSONResponse:
    """
    Basic health check.
    Returns 200 while the application is running.
    """
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": settings.APP_VERSION,
            "environment": settings.APP_ENV
        }
    )


@router.get(
    "/liveness",
    summary="Liveness Probe",
    response_model=None
)
async def liveness_probe() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "status": "alive",
            "timestamp": datetime.now().isoformat()
        }
    )


@router.get(
    "/readiness",
    summary="Readiness Probe",
    description="Checks that the database is reachable",
    response_model=None
)
async def readiness_probe() -> JSONResponse:
    """
    Readiness probe.

    Returns 503 when the database does not answer.
    """
    db_health = check_database_health()
    ready = db_health.get("status") == "healthy"

    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ready" if ready else "not_ready",
            "timestamp": datetime.now().isoformat(),
            "components": {
                "database": db_health,
            },
            "websocket_clients": manager.connection_count,
            "auto_cleaning_enabled": settings.AUTO_CLEANING_ENABLED,
        }
    )
