"""
Book Service

Read paths go through the read-through cache; write paths commit to the
store and then hand the mutation to the invalidation coordinator.
"""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import NotFoundError
from ..domain.cache.domain_services import MutationEvent
from ..domain.cache.value_objects import CacheKey
from ..domain.filters import BookFilter
from ..models import Book
from ..repositories.book import BookRepository
from ..repositories.ownership import OwnershipRepository
from .cache.cache_manager import CacheManager

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)


class BookService:
    def __init__(self, session: AsyncSession, cache: CacheManager):
        self.books = BookRepository(session)
        self.ownerships = OwnershipRepository(session)
        self.cache = cache

    async def create(self, title: str, author: str, published_date: date, pages: int) -> UUID:
        with tracer.start_as_current_span("books.create"):
            book = await self.books.add(
                Book(
                    title=title,
                    author=author,
                    published_date=published_date,
                    pages=pages,
                )
            )
            await self.books.commit()
            await self.cache.invalidation_service.apply(MutationEvent.book_created(book.id))
            return book.id

    async def get(self, book_id: UUID) -> Dict[str, Any]:
        """Single book record; raises ``NotFoundError`` when absent."""

        async def load() -> Optional[Dict[str, Any]]:
            book = await self.books.get(book_id)
            return book.to_record() if book is not None else None

        record = await self.cache.get_or_populate(
            CacheKey.book(book_id), load, self.cache.entity_ttl
        )
        if record is None:
            raise NotFoundError("Book", book_id)
        return record

    async def list(self, book_filter: BookFilter) -> List[Dict[str, Any]]:
        # Generation must be read before the store query
        key = await self.cache.book_list_key(book_filter)

        async def load() -> List[Dict[str, Any]]:
            books = await self.books.list_filtered(book_filter)
            return [book.to_record() for book in books]

        return await self.cache.get_or_populate(key, load, self.cache.list_ttl)

    async def popular(self, limit: int) -> List[Dict[str, Any]]:
        books = await self.books.popular(limit)
        return [book.to_record() for book in books]

    async def update(self, book_id: UUID, changes: Dict[str, Any]) -> UUID:
        """
        Apply a partial update. An empty change set touches neither the store
        nor the cache.
        """
        with tracer.start_as_current_span("books.update"):
            book = await self.books.get(book_id)
            if book is None:
                raise NotFoundError("Book", book_id)
            if not changes:
                return book.id

            await self.books.update(book, **changes)
            owners = await self.ownerships.owner_ids(book.id)
            await self.books.commit()
            await self.cache.invalidation_service.apply(
                MutationEvent.book_updated(book.id, owners)
            )
            return book.id

    async def delete(self, book_id: UUID) -> None:
        """Delete the book together with every ownership edge pointing at it."""
        with tracer.start_as_current_span("books.delete"):
            book = await self.books.get(book_id)
            if book is None:
                raise NotFoundError("Book", book_id)

            owners = await self.ownerships.remove_for_book(book.id)
            await self.books.delete(book)
            await self.books.commit()
            await self.cache.invalidation_service.apply(
                MutationEvent.book_deleted(book_id, owners)
            )
