"""
Unit tests for cache key derivation and TTL value objects.
"""

from uuid import UUID

import pytest

from bookshelf.domain.cache.value_objects import (
    TTL,
    CacheFamily,
    CacheKey,
    ResourceKind,
    derive_key,
)
from bookshelf.domain.filters import BookFilter, parse_book_filter

USER_ID = "5d3c7b0e-8a5e-4d44-b1b4-7f6a3f2c9e10"
BOOK_ID = "0b6f1f0a-3d5d-4a50-9a27-2f0a6b9d8c11"


class TestCacheKey:
    """Key formats."""

    def test_entity_keys_have_no_generation(self):
        assert CacheKey.book(BOOK_ID).value == f"book:{BOOK_ID}"
        assert CacheKey.user(UUID(USER_ID)).value == f"user:{USER_ID}"

    def test_identities_are_rendered_canonically(self):
        assert CacheKey.book(BOOK_ID.upper()) == CacheKey.book(BOOK_ID)
        assert CacheKey.book(BOOK_ID.replace("-", "")) == CacheKey.book(BOOK_ID)

    def test_book_list_key_embeds_generation_and_filter(self):
        key = CacheKey.book_list(3, parse_book_filter({"author": "Orwell"}))

        assert key.value == 'booksList::3::{"author":"Orwell"}'

    def test_empty_filter_list_key(self):
        assert CacheKey.book_list(0, BookFilter()).value == "booksList::0::{}"

    def test_user_list_and_user_books_keys(self):
        assert CacheKey.user_list(2).value == "usersList::2::{}"
        assert CacheKey.user_books(USER_ID, 5).value == f"userBooks:{USER_ID}::5"

    def test_generation_keys(self):
        assert CacheKey.generation(CacheFamily.BOOK_LIST).value == "generation:booksList"
        assert CacheKey.generation(CacheFamily.USER_LIST).value == "generation:usersList"
        assert (
            CacheKey.generation(CacheFamily.USER_BOOKS, USER_ID).value
            == f"generation:userBooks:{USER_ID}"
        )

    def test_generation_scope_rules(self):
        with pytest.raises(ValueError):
            CacheKey.generation(CacheFamily.USER_BOOKS)
        with pytest.raises(ValueError):
            CacheKey.generation(CacheFamily.BOOK_LIST, USER_ID)

    @pytest.mark.parametrize("generation", [-1, True, "1", 1.0])
    def test_invalid_generations_are_rejected(self, generation):
        with pytest.raises((TypeError, ValueError)):
            CacheKey.book_list(generation, BookFilter())

    def test_invalid_identity_is_rejected(self):
        with pytest.raises(ValueError):
            CacheKey.book("not-a-uuid")


class TestDeriveKey:
    """Generic dispatch."""

    def test_dispatches_to_family_constructors(self):
        book_filter = parse_book_filter({"minPages": "100"})

        assert derive_key(ResourceKind.BOOK, BOOK_ID) == CacheKey.book(BOOK_ID)
        assert derive_key(CacheFamily.BOOK_LIST, book_filter, 4) == CacheKey.book_list(
            4, book_filter
        )
        assert derive_key(CacheFamily.USER_LIST, generation=1) == CacheKey.user_list(1)
        assert derive_key(CacheFamily.USER_BOOKS, USER_ID, 9) == CacheKey.user_books(
            USER_ID, 9
        )

    def test_list_without_filter_uses_empty_filter(self):
        assert derive_key(CacheFamily.BOOK_LIST, None, 0).value == "booksList::0::{}"

    def test_family_keys_require_generation(self):
        with pytest.raises(ValueError):
            derive_key(CacheFamily.BOOK_LIST, BookFilter())

    def test_deterministic(self):
        first = derive_key(CacheFamily.BOOK_LIST, parse_book_filter({"author": "A"}), 1)
        second = derive_key(CacheFamily.BOOK_LIST, parse_book_filter({"author": "A"}), 1)

        assert first == second


class TestTTL:
    """Entry lifetimes."""

    def test_defaults(self):
        assert TTL.list_entry().seconds == 300
        assert TTL.entity_entry().seconds == 3600

    def test_list_ttl_cannot_exceed_five_minutes(self):
        with pytest.raises(ValueError):
            TTL.list_entry(301)

    def test_entity_ttl_cannot_exceed_one_hour(self):
        with pytest.raises(ValueError):
            TTL.entity_entry(3601)

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValueError):
            TTL(0)

    def test_minutes(self):
        assert TTL.minutes(5).seconds == 300
