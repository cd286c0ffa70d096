"""
API dependencies: path identity parsing and service providers.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from pydantic import StringConstraints
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_database_session
from ..core.exceptions import ValidationError
from ..infrastructure.redis.connection_factory import redis_connection_factory
from ..infrastructure.repositories.cache_repository import RedisCacheRepository
from ..services.books import BookService
from ..services.cache.cache_manager import CacheManager
from ..services.users import UserService

# Request text fields: surrounding whitespace is dropped, blank text is rejected
NonBlankText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def parse_uuid(value: str, field: str = "id") -> UUID:
    """
    Parse a path identity.

    Raises:
        ValidationError: If the value is not a UUID
    """
    try:
        return UUID(value)
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(
            f"Invalid {field} format", details={"field": field, "value": value}
        ) from None


def get_cache_manager() -> CacheManager:
    """Cache manager over the process-wide Redis client."""
    repository = RedisCacheRepository(
        redis_connection_factory.client, redis_connection_factory.circuit_breaker
    )
    return CacheManager(repository)


def get_book_service(
    session: AsyncSession = Depends(get_database_session),
    cache: CacheManager = Depends(get_cache_manager),
) -> BookService:
    return BookService(session, cache)


def get_user_service(
    session: AsyncSession = Depends(get_database_session),
    cache: CacheManager = Depends(get_cache_manager),
) -> UserService:
    return UserService(session, cache)
