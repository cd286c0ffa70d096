"""
Bookshelf Database Configuration

Async database connection management with:
- Connection pooling for PostgreSQL (asyncpg)
- Connection retry logic with exponential backoff
- Request-scoped sessions for the API layer
- Health probing and orderly shutdown
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
import structlog

from .config import get_settings
from ..models import Base

logger = structlog.get_logger()


class DatabaseManager:
    """
    Database connection manager.

    Owns the async engine and session factory. The engine is created lazily by
    ``initialize()`` so importing the application never opens a connection.
    """

    def __init__(self):
        self.settings = get_settings()
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    def _engine_kwargs(self, url: str) -> Dict[str, Any]:
        if url.startswith("sqlite"):
            kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
                # In-memory SQLite lives in one connection; share it across sessions
                kwargs["poolclass"] = StaticPool
            return kwargs

        return {
            "pool_size": self.settings.DATABASE_POOL_SIZE,
            "max_overflow": self.settings.DATABASE_MAX_OVERFLOW,
            "pool_timeout": self.settings.DATABASE_POOL_TIMEOUT,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "connect_args": {
                "command_timeout": self.settings.STORE_OPERATION_TIMEOUT_SECONDS,
                "server_settings": {"application_name": "bookshelf_api"},
            },
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((OperationalError, ConnectionError, OSError)),
        before_sleep=lambda retry_state: logger.warning(
            "Database connection retry",
            attempt=retry_state.attempt_number,
            wait_time=retry_state.next_action.sleep,
        ),
        reraise=True,
    )
    async def _create_engine_with_retry(self, url: str) -> AsyncEngine:
        """Create the engine and prove it can answer a trivial query."""
        start_time = time.time()
        engine = create_async_engine(url, **self._engine_kwargs(url))

        try:
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                if result.scalar() != 1:
                    raise RuntimeError("Database probe returned unexpected result")
        except Exception:
            await engine.dispose()
            raise

        logger.info(
            "Database engine created successfully",
            duration_seconds=round(time.time() - start_time, 3),
            dialect=engine.dialect.name,
        )
        return engine

    async def initialize(self, url: Optional[str] = None) -> None:
        """Create the engine and session factory."""
        if self.engine is not None:
            return

        database_url = url or self.settings.async_database_url
        try:
            self.engine = await self._create_engine_with_retry(database_url)
        except Exception as e:
            logger.error(
                "Database initialization failed", error=str(e), exc_info=True
            )
            raise

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        if self.settings.DATABASE_AUTO_CREATE:
            await self.create_all()

    async def create_all(self) -> None:
        """Create all tables (development and tests; production uses alembic)."""
        if self.engine is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a session; roll back whatever the caller left uncommitted on error.

        Services commit explicitly so that cache invalidation happens strictly
        after the store write is durable.
        """
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> Dict[str, Any]:
        """Probe the database with a trivial query."""
        if self.engine is None:
            return {"status": "not_initialized"}

        start_time = time.perf_counter()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "response_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
            }
        except Exception as e:
            logger.warning("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

    async def close(self) -> None:
        """Close database connections and cleanup resources."""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self.session_factory = None


# Global database manager instance
database_manager = DatabaseManager()


async def get_database_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a request-scoped session."""
    async with database_manager.get_session() as session:
        yield session
