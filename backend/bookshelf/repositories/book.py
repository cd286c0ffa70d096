"""
Book Repository

Filtered listing and popularity ranking on top of the base entity operations.
"""

from typing import List

import structlog
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.filters import BookFilter
from ..models import Book, BookOwnership
from .base import BaseRepository, run_store_operation

logger = structlog.get_logger()


class BookRepository(BaseRepository):
    """Book-specific repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Book)

    async def list_filtered(self, book_filter: BookFilter) -> List[Book]:
        """
        Books satisfying every present constraint, ordered by title.

        Date and page bounds run in SQL. The author constraint is narrowed
        with ``LIKE`` and then checked case-sensitively in-process.
        """
        stmt = select(Book)
        if book_filter.author is not None:
            stmt = stmt.where(Book.author.contains(book_filter.author, autoescape=True))
        if book_filter.start_date is not None:
            stmt = stmt.where(Book.published_date >= book_filter.start_date)
        if book_filter.end_date is not None:
            stmt = stmt.where(Book.published_date <= book_filter.end_date)
        if book_filter.min_pages is not None:
            stmt = stmt.where(Book.pages >= book_filter.min_pages)
        if book_filter.max_pages is not None:
            stmt = stmt.where(Book.pages <= book_filter.max_pages)
        stmt = stmt.order_by(Book.title, Book.id)

        result = await run_store_operation("books.list", self.session.execute(stmt))
        books = [
            book
            for book in result.scalars().all()
            if book_filter.author is None or book_filter.author in book.author
        ]

        logger.debug(
            "BookRepository: Books listed", filter=str(book_filter), count=len(books)
        )
        return books

    async def popular(self, limit: int) -> List[Book]:
        """Books ordered by number of owners (desc), then title."""
        owner_count = func.count(BookOwnership.user_id).label("owner_count")
        stmt = (
            select(Book, owner_count)
            .outerjoin(BookOwnership, BookOwnership.book_id == Book.id)
            .group_by(Book.id)
            .order_by(desc(owner_count), Book.title, Book.id)
            .limit(limit)
        )

        result = await run_store_operation("books.popular", self.session.execute(stmt))
        return [row[0] for row in result.all()]
