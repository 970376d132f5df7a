"""Liveness and readiness payloads."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    READY = "ready"
    DEGRADED = "degraded"


class HealthResponse(BaseModel):
    """Answer of the ping endpoint."""

    status: HealthStatus = Field(..., description="Always healthy while the process serves requests")
    service: str = Field(..., description="Service name reported to tracing and metrics")
    version: str = Field(..., description="Service version")
    timestamp: datetime = Field(..., description="Server time, UTC")


class ReadinessResponse(BaseModel):
    """Answer of /ready; ``checks`` maps each dependency to ok or unavailable."""

    status: HealthStatus
    service: str
    checks: dict[str, str] = Field(default_factory=dict)
