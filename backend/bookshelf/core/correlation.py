"""
Bookshelf Correlation ID Middleware

Implements correlation ID management for request tracking.

Features:
- Automatic UUID v4 correlation ID generation for new requests
- Respects existing correlation ID from request headers
- Adds correlation ID to response headers
- Binds the correlation ID into the structlog context for every log line
"""

import re
import time
import uuid
from typing import Awaitable, Callable, Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response as StarletteResponse
from starlette.types import ASGIApp

logger = structlog.get_logger()

CORRELATION_CONTEXT_KEY = "correlation_id"
_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9\-_.]{8,128}$")


def get_correlation_id() -> Optional[str]:
    """Return the correlation ID bound to the current request context."""
    return structlog.contextvars.get_contextvars().get(CORRELATION_CONTEXT_KEY)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware for managing correlation IDs in HTTP requests.

    Extracts or generates a correlation ID, binds it for structured logging
    and echoes it in the response headers.
    """

    possible_headers = (
        "x-correlation-id",
        "correlation-id",
        "x-request-id",
        "request-id",
    )

    def __init__(self, app: ASGIApp, header_name: str = "x-correlation-id"):
        super().__init__(app)
        self.header_name = header_name.lower()

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[StarletteResponse]],
    ) -> StarletteResponse:
        correlation_id = self._extract_or_generate_correlation_id(request)

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**{CORRELATION_CONTEXT_KEY: correlation_id})

        start_time = time.perf_counter()
        logger.debug(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_host=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000

        response.headers[self.header_name] = correlation_id
        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response

    def _extract_or_generate_correlation_id(self, request: Request) -> str:
        for header_name in self.possible_headers:
            value = request.headers.get(header_name, "").strip()
            if value:
                if _VALID_CORRELATION_ID.match(value):
                    return value
                logger.warning(
                    "Invalid correlation ID format in request header, generating new one",
                    received_correlation_id=value[:128],
                )
                break

        return str(uuid.uuid4())
