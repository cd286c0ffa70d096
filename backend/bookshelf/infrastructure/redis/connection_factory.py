"""
Redis Connection Factory

Connection management for Redis: one shared connection pool per process,
a shared circuit breaker, health checks and orderly shutdown.
"""

import asyncio
import time
from typing import Any, Dict, Optional

import structlog
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import (
    AuthenticationError as RedisAuthError,
    ConnectionError as RedisConnectionError,
    TimeoutError as RedisTimeoutError,
)

from ...core.config import get_settings
from .circuit_breaker import CircuitBreakerConfig, RedisCircuitBreaker
from .exceptions import CacheConnectionException

logger = structlog.get_logger()


class RedisConnectionFactory:
    """
    Factory owning the process-wide Redis client.

    The client is created by ``initialize()``; tests and alternative
    deployments may hand in an already-built client instead.
    """

    def __init__(self):
        self.settings = get_settings()
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[Redis] = None
        self._owns_client = False
        self._lock = asyncio.Lock()
        self.circuit_breaker = RedisCircuitBreaker(
            CircuitBreakerConfig(
                failure_threshold=self.settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
                recovery_timeout=self.settings.CIRCUIT_BREAKER_RECOVERY_TIMEOUT,
                success_threshold=3,
                operation_timeout=self.settings.REDIS_OPERATION_TIMEOUT,
                failure_exceptions=(
                    RedisConnectionError,
                    RedisAuthError,
                    RedisTimeoutError,
                    ConnectionRefusedError,
                    OSError,
                ),
            )
        )

    @property
    def is_initialized(self) -> bool:
        return self._client is not None

    async def initialize(self, client: Optional[Redis] = None) -> None:
        """Create the connection pool and verify connectivity."""
        if self._client is not None:
            return

        async with self._lock:
            if self._client is not None:
                return

            if client is not None:
                self._client = client
                self._owns_client = False
                logger.info("Redis connection factory initialized with external client")
                return

            try:
                self._pool = ConnectionPool.from_url(
                    self.settings.REDIS_URL,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=self.settings.REDIS_CONNECTION_TIMEOUT,
                    socket_timeout=self.settings.REDIS_OPERATION_TIMEOUT,
                    health_check_interval=self.settings.REDIS_HEALTH_CHECK_INTERVAL,
                    max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                )
                redis_client = Redis(connection_pool=self._pool)
                await redis_client.ping()
            except Exception as e:
                logger.error(
                    "Failed to initialize Redis connection factory", error=str(e)
                )
                if self._pool is not None:
                    await self._pool.disconnect()
                    self._pool = None
                raise CacheConnectionException(
                    message=f"Redis connection factory initialization failed: {e}",
                    original_error=e,
                )

            self._client = redis_client
            self._owns_client = True
            logger.info(
                "Redis connection factory initialized",
                max_connections=self.settings.REDIS_MAX_CONNECTIONS,
            )

    @property
    def client(self) -> Redis:
        """The shared client; fails loudly when used before ``initialize()``."""
        if self._client is None:
            raise CacheConnectionException(message="Redis client not initialized")
        return self._client

    async def health_check(self) -> Dict[str, Any]:
        """Ping Redis and report latency and circuit breaker state."""
        if self._client is None:
            return {"status": "not_initialized"}

        start_time = time.perf_counter()
        try:
            await asyncio.wait_for(
                self._client.ping(), timeout=self.settings.REDIS_OPERATION_TIMEOUT
            )
            return {
                "status": "healthy",
                "response_time_ms": round((time.perf_counter() - start_time) * 1000, 2),
                "circuit_breaker": self.circuit_breaker.get_status()["state"],
            }
        except Exception as e:
            logger.warning("Redis health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
                "circuit_breaker": self.circuit_breaker.get_status()["state"],
            }

    async def close(self) -> None:
        """Close Redis connections."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
        self._client = None
        self._pool = None
        self._owns_client = False
        logger.info("Redis connections closed")


# Global connection factory instance
redis_connection_factory = RedisConnectionFactory()
