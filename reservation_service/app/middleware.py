"""Middleware configuration for FastAPI application."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING
import uuid

from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from reservation_service.core.settings import get_app_settings
from reservation_service.infra.logging.context import log_context

if TYPE_CHECKING:
    from fastapi import FastAPI

    from reservation_service.core.settings.app import AppSettings

logger = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tag each HTTP request with an ID, in the response and in every log record."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        with log_context(request_id=request_id):
            response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def configure_middleware(app: FastAPI, app_settings: AppSettings | None = None) -> None:
    """Configure middleware for the application.

    CORS uses the same ALLOWED_ORIGINS list as the WebSocket upgrade check.

    Args:
        app: FastAPI application instance.
        app_settings: Optional settings override.
    """
    app_settings = app_settings or get_app_settings()

    logger.info("Configuring CORS", extra={"cors_origins": app_settings.allowed_origins})
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=app_settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=3600,
    )

    app.add_middleware(RequestIDMiddleware)
