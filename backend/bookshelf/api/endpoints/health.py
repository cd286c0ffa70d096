"""
Health check endpoints for the Bookshelf API.

Liveness answers without touching dependencies; readiness probes the store
and Redis.
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from ...core.database import database_manager
from ...infrastructure.redis.connection_factory import redis_connection_factory

logger = structlog.get_logger()
router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health_check() -> Dict[str, str]:
    """Basic liveness check for load balancers."""
    return {"status": "OK"}


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """
    Readiness check endpoint.

    Returns 503 unless both the store and Redis answer their probes.
    """
    checks: Dict[str, Any] = {
        "database": await database_manager.health_check(),
        "redis": await redis_connection_factory.health_check(),
    }
    ready = all(check.get("status") == "healthy" for check in checks.values())

    if not ready:
        logger.warning("Readiness check failed", checks=checks)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )

    return JSONResponse(content={"status": "ready", "checks": checks})
