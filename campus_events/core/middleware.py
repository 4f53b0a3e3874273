"""
HTTP middleware: CORS for the frontend, request correlation ids and
per-request access logging.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from campus_events.config import Settings

logger = structlog.get_logger(__name__)

QUIET_PATHS = frozenset({"/health", "/api/health"})


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with timing; method and path are bound for every log line of the request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start = time.perf_counter()
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request_failed", duration_ms=_elapsed_ms(start))
            raise
        finally:
            structlog.contextvars.unbind_contextvars("method", "path")

        log(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=_elapsed_ms(start),
            client_ip=request.client.host if request.client else None,
        )
        return response


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    # Added last runs first: the correlation id wraps logging and CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL, *settings.CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
