"""
Cache Manager Service

Read-through caching for the API read paths. Derives generation-tagged keys
for list families and populates misses from a loader.
"""

from typing import Any, Awaitable, Callable, Optional, Union
from uuid import UUID

import structlog
from opentelemetry import trace

from ...core.config import get_settings
from ...domain.cache.domain_services import CacheInvalidationService
from ...domain.cache.repository_interfaces import CacheRepository
from ...domain.cache.value_objects import CacheFamily, CacheKey, TTL
from ...domain.filters import BookFilter

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)

Loader = Callable[[], Awaitable[Optional[Any]]]


class CacheManager:
    """
    High-level cache service.

    Provides the read-through operation, key derivation against current
    generations and the invalidation coordinator for the write path.
    """

    def __init__(self, repository: CacheRepository):
        settings = get_settings()
        self.repository = repository
        self.list_ttl = TTL.list_entry(settings.CACHE_LIST_TTL_SECONDS)
        self.entity_ttl = TTL.entity_entry(settings.CACHE_ENTITY_TTL_SECONDS)
        self.invalidation_service = CacheInvalidationService(repository)

    async def get_or_populate(self, key: CacheKey, loader: Loader, ttl: TTL) -> Optional[Any]:
        """
        Return the cached value for ``key`` or load, store and return it.

        A loader result of ``None`` means "not found" and is never cached.
        Cache errors propagate; a broken cache fails the request.
        """
        with tracer.start_as_current_span("cache.get_or_populate") as span:
            span.set_attribute("cache.key", key.value)

            cached = await self.repository.get(key)
            if cached is not None:
                span.set_attribute("cache.hit", True)
                logger.debug("Cache hit", key=key.value)
                return cached

            span.set_attribute("cache.hit", False)
            value = await loader()
            if value is None:
                return None

            await self.repository.set(key, value, ttl)
            logger.debug("Cache populated", key=key.value, ttl=ttl.seconds)
            return value

    async def book_list_key(self, book_filter: BookFilter) -> CacheKey:
        generation = await self.repository.get_generation(
            CacheKey.generation(CacheFamily.BOOK_LIST)
        )
        return CacheKey.book_list(generation, book_filter)

    async def user_list_key(self) -> CacheKey:
        generation = await self.repository.get_generation(
            CacheKey.generation(CacheFamily.USER_LIST)
        )
        return CacheKey.user_list(generation)

    async def user_books_key(self, user_id: Union[str, UUID]) -> CacheKey:
        generation = await self.repository.get_generation(
            CacheKey.generation(CacheFamily.USER_BOOKS, user_id)
        )
        return CacheKey.user_books(user_id, generation)
