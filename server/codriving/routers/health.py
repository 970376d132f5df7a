"""Liveness, readiness and service information endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_db
from ..core.observability import SERVICE_NAME, SERVICE_VERSION
from ..schemas.health import HealthResponse, HealthStatus, ReadinessResponse

logger = logging.getLogger(__name__)

# Unversioned probes for load balancers and orchestrators
probes_router = APIRouter(tags=["Health"])

router = APIRouter(prefix="/v1/health", tags=["health"])


@probes_router.get("/health", summary="Liveness probe")
async def health_check() -> dict:
    return {
        "status": HealthStatus.HEALTHY.value,
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "environment": settings.environment,
    }


@probes_router.get("/ready", response_model=ReadinessResponse, summary="Readiness probe")
async def readiness_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """
    Run ``SELECT 1`` against the database.

    Answers 503 with a degraded status while the database is unreachable.
    """
    try:
        await db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning("Readiness check failed", extra={"error": str(e)})
        degraded = ReadinessResponse(
            status=HealthStatus.DEGRADED,
            service=SERVICE_NAME,
            checks={"database": "unavailable"},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=degraded.model_dump(mode="json"),
        )

    ready = ReadinessResponse(status=HealthStatus.READY, service=SERVICE_NAME, checks={"database": "ok"})
    return JSONResponse(status_code=200, content=ready.model_dump(mode="json"))


@probes_router.get("/info", summary="Service information")
async def service_info() -> dict:
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": "Co-driving booking lifecycle and trip search",
        "environment": settings.environment,
        "features": {
            "authentication": "bearer-jwt",
            "tracing": settings.otlp_endpoint is not None,
            "problem_details": True,
        },
        "endpoints": {
            "health": "/health",
            "readiness": "/ready",
            "metrics": "/metrics",
            "booking": "/v1/booking",
            "trip": "/v1/trip",
            "search": "/v1/search",
            "docs": "/docs" if settings.debug else None,
        },
    }


@router.post("/ping", response_model=HealthResponse)
async def health_ping() -> JSONResponse:
    """Report that the process is up, with its name, version and clock."""
    pong = HealthResponse(
        status=HealthStatus.HEALTHY,
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        timestamp=datetime.now(timezone.utc),
    )

    logger.debug("Ping answered", extra={"service": SERVICE_NAME})

    return JSONResponse(status_code=200, content=pong.model_dump(mode="json"))
