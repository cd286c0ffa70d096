"""
Ownership Repository

Edges of the many-to-many user/book relation. The composite primary key
rules out duplicate edges; the ``book_id`` index serves the reverse lookups
used when a book is deleted.
"""

from typing import List
from uuid import UUID

import structlog
from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Book, BookOwnership
from .base import run_store_operation

logger = structlog.get_logger()


class OwnershipRepository:
    """Repository for ``BookOwnership`` edges."""

    def __init__(self, session: AsyncSession):
        if not isinstance(session, AsyncSession):
            raise TypeError(
                f"session must be AsyncSession instance, got {type(session).__name__}"
            )
        self.session = session

    async def assign(self, user_id: UUID, book_id: UUID) -> bool:
        """
        Create the edge if absent. The insert skips an existing primary key
        instead of failing on it, so concurrent assignments of one edge agree.

        Returns:
            True when a new edge was created, False when it already existed
        """
        insert = (
            postgresql_insert
            if self.session.get_bind().dialect.name == "postgresql"
            else sqlite_insert
        )
        stmt = (
            insert(BookOwnership)
            .values(user_id=user_id, book_id=book_id)
            .on_conflict_do_nothing(index_elements=["user_id", "book_id"])
        )
        result = await run_store_operation("ownerships.insert", self.session.execute(stmt))
        if not result.rowcount:
            return False

        logger.info(
            "OwnershipRepository: Edge created",
            user_id=str(user_id),
            book_id=str(book_id),
        )
        return True

    async def remove(self, user_id: UUID, book_id: UUID) -> bool:
        """Delete one edge; returns whether it existed."""
        stmt = delete(BookOwnership).where(
            BookOwnership.user_id == user_id, BookOwnership.book_id == book_id
        )
        result = await run_store_operation("ownerships.delete", self.session.execute(stmt))
        return result.rowcount > 0

    async def books_for_user(self, user_id: UUID) -> List[Book]:
        stmt = (
            select(Book)
            .join(BookOwnership, BookOwnership.book_id == Book.id)
            .where(BookOwnership.user_id == user_id)
            .order_by(Book.title, Book.id)
        )
        result = await run_store_operation(
            "ownerships.books_for_user", self.session.execute(stmt)
        )
        return list(result.scalars().all())

    async def owner_ids(self, book_id: UUID) -> List[UUID]:
        stmt = select(BookOwnership.user_id).where(BookOwnership.book_id == book_id)
        result = await run_store_operation(
            "ownerships.owners_of_book", self.session.execute(stmt)
        )
        return list(result.scalars().all())

    async def remove_for_book(self, book_id: UUID) -> List[UUID]:
        """Delete every edge of a book; returns the former owners."""
        owners = await self.owner_ids(book_id)
        if owners:
            stmt = delete(BookOwnership).where(BookOwnership.book_id == book_id)
            await run_store_operation("ownerships.delete", self.session.execute(stmt))
            logger.info(
                "OwnershipRepository: Book edges removed",
                book_id=str(book_id),
                count=len(owners),
            )
        return owners

    async def remove_for_user(self, user_id: UUID) -> int:
        """Delete every edge of a user; returns how many were removed."""
        stmt = delete(BookOwnership).where(BookOwnership.user_id == user_id)
        result = await run_store_operation("ownerships.delete", self.session.execute(stmt))
        if result.rowcount:
            logger.info(
                "OwnershipRepository: User edges removed",
                user_id=str(user_id),
                count=result.rowcount,
            )
        return result.rowcount
