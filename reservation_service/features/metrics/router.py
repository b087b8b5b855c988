"""Prometheus metrics endpoint for observability.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    - realtime_connections - Registered WebSocket connections
    - realtime_frames_received_total - Client frames by message type
    - realtime_messages_broadcast_total - Broadcast events by message type
    - realtime_write_failures_total - Failed or timed-out broadcast writes
    - realtime_broker_errors_total - Broker failures by operation
    - realtime_broadcast_recipients - Recipients per broadcast
    - realtime_connection_duration_seconds - Connection lifetimes
    - application_info - Service version, name, and environment labels

Example Prometheus Configuration:
    ```yaml
    scrape_configs:
      - job_name: 'reservation-service'
        static_configs:
          - targets: ['localhost:8080']
        metrics_path: '/metrics'
    ```
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from reservation_service.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics")
async def metrics() -> Response:
    """Expose Prometheus metrics in text exposition format."""
    data = generate_latest(REGISTRY)
    return Response(
        content=data,
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
