"""Health check API endpoints.

- GET /: plain-text liveness banner
- GET /health: broker reachability, 503 when the broker cannot be reached
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Response, status
from fastapi.responses import PlainTextResponse

# Runtime import so FastAPI resolves the Annotated[..., Depends(...)] metadata
from reservation_service.core.dependencies.realtime import OptionalRealtimeHub  # noqa: TC001
from reservation_service.core.settings import get_app_settings
from reservation_service.features.health.schemas import HealthResponse, HealthStatus

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse, summary="Liveness banner")
async def root() -> str:
    return "Service is running"


@router.get(
    "/health",
    response_model=HealthResponse,
    responses={503: {"description": "Broker unreachable or realtime hub not running"}},
    summary="Health check",
)
async def health_check(response: Response, hub: OptionalRealtimeHub) -> HealthResponse:
    """Report whether the realtime hub is running and its broker reachable."""
    app_settings = get_app_settings()

    broker_ok = await hub.broker.ping() if hub is not None else False
    checks = {"realtime": hub is not None, "broker": broker_ok}
    healthy = all(checks.values())
    if not healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
        timestamp=datetime.now(UTC),
        service=app_settings.service_name,
        version=app_settings.version,
        checks=checks,
        connections=len(hub.registry) if hub is not None else 0,
    )
