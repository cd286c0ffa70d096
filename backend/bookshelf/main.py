"""
Bookshelf API - Main FastAPI Application

Books, users and ownership behind a read-through Redis cache with
generation-based invalidation.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.endpoints.books import router as books_router
from .api.endpoints.health import router as health_router
from .api.endpoints.metrics import router as metrics_router
from .api.endpoints.users import router as users_router
from .constants import APP_NAME, APP_VERSION
from .core.config import get_settings
from .core.correlation import CorrelationIdMiddleware
from .core.database import database_manager
from .core.exceptions import register_exception_handlers
from .core.logging import configure_logging
from .core.telemetry import setup_telemetry, shutdown_telemetry
from .infrastructure.redis.connection_factory import redis_connection_factory

logger = structlog.get_logger()
settings = get_settings()


# Application lifecycle management
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the store and Redis connections; close them on shutdown."""
    configure_logging()
    logger.info("Starting Bookshelf API", environment=settings.ENVIRONMENT)

    try:
        await database_manager.initialize()
        await redis_connection_factory.initialize()
    except Exception:
        logger.exception("Failed to initialize application")
        raise

    logger.info(
        "Bookshelf API started successfully",
        version=APP_VERSION,
        api_prefix=settings.API_PREFIX,
    )

    yield

    logger.info("Shutting down Bookshelf API")
    try:
        await redis_connection_factory.close()
        await database_manager.close()
        logger.info("Application shutdown completed")
    finally:
        shutdown_telemetry()


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    description="Books, users and ownership with a consistent read-through cache",
    version=APP_VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add correlation ID middleware for request tracking
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(health_router, prefix=settings.API_PREFIX)
app.include_router(books_router, prefix=settings.API_PREFIX)
app.include_router(users_router, prefix=settings.API_PREFIX)
app.include_router(metrics_router)

setup_telemetry(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)
