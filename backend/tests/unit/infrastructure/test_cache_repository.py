"""
Tests for the Redis cache repository against an in-process fake Redis.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from bookshelf.domain.cache.value_objects import TTL, CacheFamily, CacheKey
from bookshelf.infrastructure.redis.circuit_breaker import (
    CircuitBreakerConfig,
    RedisCircuitBreaker,
)
from bookshelf.infrastructure.redis.exceptions import (
    CacheConnectionException,
    CacheOperationTimeoutException,
    CacheSerializationException,
)
from bookshelf.infrastructure.repositories.cache_repository import RedisCacheRepository

BOOK_KEY = CacheKey.book("0b6f1f0a-3d5d-4a50-9a27-2f0a6b9d8c11")
GENERATION_KEY = CacheKey.generation(CacheFamily.BOOK_LIST)


def make_breaker(operation_timeout: float = 1.0) -> RedisCircuitBreaker:
    return RedisCircuitBreaker(
        CircuitBreakerConfig(
            operation_timeout=operation_timeout,
            failure_exceptions=(RedisConnectionError, OSError),
        )
    )


@pytest.fixture
def repository(redis_client):
    return RedisCacheRepository(redis_client, make_breaker())


class TestRedisCacheRepository:
    """Values, TTLs and generation counters."""

    @pytest.mark.asyncio
    async def test_set_then_get(self, repository):
        record = {"id": "x", "title": "1984", "pages": 328}

        await repository.set(BOOK_KEY, record, TTL.entity_entry())

        assert await repository.get(BOOK_KEY) == record

    @pytest.mark.asyncio
    async def test_miss_returns_none(self, repository):
        assert await repository.get(BOOK_KEY) is None

    @pytest.mark.asyncio
    async def test_entries_expire(self, repository):
        await repository.set(BOOK_KEY, [], TTL.list_entry())

        remaining = await repository.ttl(BOOK_KEY)

        assert 0 < remaining <= 300

    @pytest.mark.asyncio
    async def test_delete_counts_existing_keys(self, repository):
        await repository.set(BOOK_KEY, {"id": "x"}, TTL.entity_entry())

        assert await repository.delete(BOOK_KEY, CacheKey.user_list(0)) == 1
        assert await repository.delete() == 0
        assert await repository.get(BOOK_KEY) is None

    @pytest.mark.asyncio
    async def test_absent_generation_reads_as_zero(self, repository):
        assert await repository.get_generation(GENERATION_KEY) == 0

    @pytest.mark.asyncio
    async def test_generation_bumps_monotonically(self, repository, redis_client):
        assert await repository.bump_generation(GENERATION_KEY) == 1
        assert await repository.bump_generation(GENERATION_KEY) == 2
        assert await repository.get_generation(GENERATION_KEY) == 2
        # Counters never expire
        assert await redis_client.ttl(GENERATION_KEY.value) == -1

    @pytest.mark.asyncio
    async def test_corrupt_payload_raises_serialization_error(
        self, repository, redis_client
    ):
        await redis_client.set(BOOK_KEY.value, "{not json")

        with pytest.raises(CacheSerializationException):
            await repository.get(BOOK_KEY)

    @pytest.mark.asyncio
    async def test_ping(self, repository):
        assert await repository.ping() is True


class TestRedisCacheRepositoryFailures:
    """Redis failures surface as cache exceptions."""

    @pytest.mark.asyncio
    async def test_connection_error_is_mapped(self):
        client = AsyncMock()
        client.get = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        repository = RedisCacheRepository(client, make_breaker())

        with pytest.raises(CacheConnectionException) as exc_info:
            await repository.get(BOOK_KEY)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_timeout_is_mapped(self):
        async def slow_get(key):
            await asyncio.sleep(1)

        client = AsyncMock()
        client.get = slow_get
        repository = RedisCacheRepository(client, make_breaker(operation_timeout=0.01))

        with pytest.raises(CacheOperationTimeoutException) as exc_info:
            await repository.get(BOOK_KEY)

        assert exc_info.value.details["operation"] == "get"
        assert exc_info.value.details["key"] == BOOK_KEY.value
