"""
Redis Cache Repository Implementation

Infrastructure implementation of the cache repository interface using Redis.
Values are stored as JSON with ``SETEX`` so Redis enforces expiry; generation
counters are plain integers bumped with ``INCR``.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ...domain.cache.repository_interfaces import CacheRepository
from ...domain.cache.value_objects import CacheKey, TTL
from ..redis.circuit_breaker import RedisCircuitBreaker
from ..redis.exceptions import (
    CacheConnectionException,
    CacheException,
    CacheOperationTimeoutException,
    CacheSerializationException,
)

logger = structlog.get_logger()

T = TypeVar("T")


class RedisCacheRepository(CacheRepository):
    """Redis implementation of the cache repository."""

    def __init__(self, client: Redis, circuit_breaker: RedisCircuitBreaker):
        self.client = client
        self.circuit_breaker = circuit_breaker

    async def _execute(
        self,
        operation: str,
        key: Optional[CacheKey],
        func: Callable[..., Awaitable[T]],
        *args,
    ) -> T:
        """Run one Redis command through the circuit breaker, mapping failures."""
        try:
            return await self.circuit_breaker.call(func, *args)
        except CacheException:
            raise
        except asyncio.TimeoutError as e:
            raise CacheOperationTimeoutException(
                operation=operation,
                timeout_seconds=self.circuit_breaker.config.operation_timeout,
                key=str(key) if key else None,
            ) from e
        except (RedisError, OSError) as e:
            logger.error(
                "Redis operation failed",
                operation=operation,
                key=str(key) if key else None,
                error=str(e),
            )
            raise CacheConnectionException(
                message=f"Redis {operation} failed: {e}", original_error=e
            )

    async def get(self, key: CacheKey) -> Optional[Any]:
        """Return the decoded value, or ``None`` on a miss."""
        raw = await self._execute("get", key, self.client.get, key.value)
        if raw is None:
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            raise CacheSerializationException(key.value, original_error=e)

    async def set(self, key: CacheKey, value: Any, ttl: TTL) -> None:
        """Store a JSON value with a TTL."""
        try:
            payload = json.dumps(value, default=str)
        except (TypeError, ValueError) as e:
            raise CacheSerializationException(key.value, original_error=e)

        await self._execute("setex", key, self.client.setex, key.value, ttl.seconds, payload)
        logger.debug("Cache entry stored", key=key.value, ttl=ttl.seconds)

    async def delete(self, *keys: CacheKey) -> int:
        """Delete entries; returns how many existed."""
        if not keys:
            return 0
        values = [key.value for key in keys]
        return await self._execute("delete", keys[0], self.client.delete, *values)

    async def ttl(self, key: CacheKey) -> int:
        return await self._execute("ttl", key, self.client.ttl, key.value)

    async def get_generation(self, key: CacheKey) -> int:
        raw = await self._execute("get", key, self.client.get, key.value)
        if raw is None:
            return 0
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise CacheSerializationException(key.value, original_error=e)

    async def bump_generation(self, key: CacheKey) -> int:
        generation = await self._execute("incr", key, self.client.incr, key.value)
        logger.debug("Generation bumped", key=key.value, generation=generation)
        return int(generation)

    async def ping(self) -> bool:
        return bool(await self._execute("ping", None, self.client.ping))
