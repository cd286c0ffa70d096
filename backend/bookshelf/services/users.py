"""
User Service

User CRUD plus the ownership relation. Assignment is idempotent; only a
newly created edge invalidates the user's owned-books list.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..domain.cache.domain_services import MutationEvent
from ..domain.cache.value_objects import CacheKey
from ..models import User
from ..repositories.book import BookRepository
from ..repositories.ownership import OwnershipRepository
from ..repositories.user import UserRepository
from .cache.cache_manager import CacheManager

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)


class UserService:
    def __init__(self, session: AsyncSession, cache: CacheManager):
        self.users = UserRepository(session)
        self.books = BookRepository(session)
        self.ownerships = OwnershipRepository(session)
        self.cache = cache

    async def create(self, name: str, email: str) -> UUID:
        with tracer.start_as_current_span("users.create"):
            user = await self.users.add(User(name=name, email=email))
            await self.users.commit()
            await self.cache.invalidation_service.apply(MutationEvent.user_created(user.id))
            return user.id

    async def get(self, user_id: UUID) -> Dict[str, Any]:
        async def load() -> Optional[Dict[str, Any]]:
            user = await self.users.get(user_id)
            return user.to_record() if user is not None else None

        record = await self.cache.get_or_populate(
            CacheKey.user(user_id), load, self.cache.entity_ttl
        )
        if record is None:
            raise NotFoundError("User", user_id)
        return record

    async def list(self) -> List[Dict[str, Any]]:
        key = await self.cache.user_list_key()

        async def load() -> List[Dict[str, Any]]:
            return [user.to_record() for user in await self.users.list_all()]

        return await self.cache.get_or_populate(key, load, self.cache.list_ttl)

    async def update(self, user_id: UUID, changes: Dict[str, Any]) -> UUID:
        with tracer.start_as_current_span("users.update"):
            user = await self.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            if not changes:
                return user.id

            await self.users.update(user, **changes)
            await self.users.commit()
            await self.cache.invalidation_service.apply(MutationEvent.user_updated(user.id))
            return user.id

    async def delete(self, user_id: UUID) -> None:
        """Delete the user together with the user's ownership edges."""
        with tracer.start_as_current_span("users.delete"):
            user = await self.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)

            await self.ownerships.remove_for_user(user.id)
            await self.users.delete(user)
            await self.users.commit()
            await self.cache.invalidation_service.apply(MutationEvent.user_deleted(user_id))

    async def assign_book(self, user_id: UUID, book_id: UUID) -> bool:
        """Record that the user owns the book; returns whether the edge is new."""
        with tracer.start_as_current_span("users.assign_book"):
            if await self.users.get(user_id) is None:
                raise NotFoundError("User", user_id)
            if await self.books.get(book_id) is None:
                raise NotFoundError("Book", book_id)

            created = await self.ownerships.assign(user_id, book_id)
            if not created:
                logger.debug(
                    "Ownership already recorded",
                    user_id=str(user_id),
                    book_id=str(book_id),
                )
                return False

            await self.users.commit()
            await self.cache.invalidation_service.apply(
                MutationEvent.ownership_assigned(user_id, book_id)
            )
            return True

    async def remove_book(self, user_id: UUID, book_id: UUID) -> None:
        with tracer.start_as_current_span("users.remove_book"):
            if not await self.ownerships.remove(user_id, book_id):
                raise NotFoundError("Ownership", f"{user_id}/{book_id}")

            await self.users.commit()
            await self.cache.invalidation_service.apply(
                MutationEvent.ownership_removed(user_id, book_id)
            )

    async def list_books(self, user_id: UUID) -> List[Dict[str, Any]]:
        """Books owned by the user; raises ``NotFoundError`` for unknown users."""
        key = await self.cache.user_books_key(user_id)

        async def load() -> Optional[List[Dict[str, Any]]]:
            if await self.users.get(user_id) is None:
                return None
            books = await self.ownerships.books_for_user(user_id)
            return [book.to_record() for book in books]

        records = await self.cache.get_or_populate(key, load, self.cache.list_ttl)
        if records is None:
            raise NotFoundError("User", user_id)
        return records
