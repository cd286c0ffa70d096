"""
Ownership repository tests against the SQLite store.
"""

from datetime import date

import pytest
import pytest_asyncio

from bookshelf.models import Book, User
from bookshelf.repositories import OwnershipRepository


@pytest_asyncio.fixture
async def owner_and_book(database):
    async with database.get_session() as session:
        user = User(name="Ada Lovelace", email="ada@example.com")
        book = Book(
            title="1984",
            author="George Orwell",
            published_date=date(1949, 6, 8),
            pages=328,
        )
        session.add_all([user, book])
        await session.commit()
        return user.id, book.id


class TestOwnershipAssign:
    @pytest.mark.asyncio
    async def test_new_edge_is_reported_as_created(self, database, owner_and_book):
        user_id, book_id = owner_and_book

        async with database.get_session() as session:
            repository = OwnershipRepository(session)
            assert await repository.assign(user_id, book_id) is True
            await session.commit()

        async with database.get_session() as session:
            assert await OwnershipRepository(session).owner_ids(book_id) == [user_id]

    @pytest.mark.asyncio
    async def test_edge_committed_elsewhere_is_not_an_error(
        self, database, owner_and_book
    ):
        user_id, book_id = owner_and_book

        async with database.get_session() as first:
            assert await OwnershipRepository(first).assign(user_id, book_id) is True
            await first.commit()

        # A second unit of work that decided to assign before the first committed
        async with database.get_session() as second:
            assert await OwnershipRepository(second).assign(user_id, book_id) is False
            await second.commit()

        async with database.get_session() as session:
            assert await OwnershipRepository(session).owner_ids(book_id) == [user_id]
