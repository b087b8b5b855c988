"""Health check response schemas."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(StrEnum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class HealthResponse(BaseModel):
    """Health check response.

    Example:
        ```json
        {
            "status": "healthy",
            "timestamp": "2025-01-01T00:00:00Z",
            "service": "reservation-service",
            "version": "1.0.0",
            "checks": {"realtime": true, "broker": true},
            "connections": 3
        }
        ```
    """

    status: HealthStatus = Field(description="Health status (healthy, unhealthy)")
    timestamp: datetime = Field(description="Check timestamp")
    service: str = Field(min_length=1, max_length=100, description="Service name")
    version: str = Field(min_length=1, max_length=50, description="Service version")
    checks: dict[str, bool] = Field(
        default_factory=dict, description="Individual dependency health checks"
    )
    connections: int = Field(default=0, ge=0, description="Registered WebSocket connections")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "timestamp": "2025-01-01T00:00:00Z",
                "service": "reservation-service",
                "version": "1.0.0",
                "checks": {"realtime": True, "broker": True},
                "connections": 3,
            }
        },
    )
