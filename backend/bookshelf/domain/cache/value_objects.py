"""
Cache Value Objects

Immutable value objects for the cache domain: key derivation, generation
counter keys and entry lifetimes.

Key formats:
    book:<uuid>
    user:<uuid>
    booksList::<generation>::<canonical-filter>
    usersList::<generation>::{}
    userBooks:<uuid>::<generation>
    generation:<family>[:<scope>]
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from ..filters import BookFilter
from ...constants import MAX_ENTITY_TTL_SECONDS, MAX_LIST_TTL_SECONDS

EMPTY_FILTER = "{}"


class ResourceKind(str, Enum):
    """Single-entity cache kinds."""

    BOOK = "book"
    USER = "user"


class CacheFamily(str, Enum):
    """Generation-tagged cache families."""

    BOOK_LIST = "booksList"
    USER_LIST = "usersList"
    USER_BOOKS = "userBooks"


def _canonical_id(identifier: Union[str, UUID]) -> str:
    """Render an identity in canonical lowercase hyphenated form."""
    if isinstance(identifier, UUID):
        return str(identifier)
    return str(UUID(str(identifier)))


def _check_generation(generation: int) -> int:
    if isinstance(generation, bool) or not isinstance(generation, int):
        raise TypeError(f"generation must be int, got {type(generation).__name__}")
    if generation < 0:
        raise ValueError("generation cannot be negative")
    return generation


@dataclass(frozen=True)
class CacheKey:
    """
    Immutable cache key value object.

    Constructors are pure: equal inputs always produce equal keys.
    """

    value: str

    def __post_init__(self) -> None:
        """Validate cache key format."""
        if not self.value:
            raise ValueError("Cache key cannot be empty")

    @classmethod
    def book(cls, book_id: Union[str, UUID]) -> "CacheKey":
        """Single-book key, independent of any generation."""
        return cls(f"{ResourceKind.BOOK.value}:{_canonical_id(book_id)}")

    @classmethod
    def user(cls, user_id: Union[str, UUID]) -> "CacheKey":
        """Single-user key, independent of any generation."""
        return cls(f"{ResourceKind.USER.value}:{_canonical_id(user_id)}")

    @classmethod
    def book_list(cls, generation: int, book_filter: BookFilter) -> "CacheKey":
        """Filtered book list key tagged with the book-list generation."""
        generation = _check_generation(generation)
        return cls(
            f"{CacheFamily.BOOK_LIST.value}::{generation}::{book_filter.canonical()}"
        )

    @classmethod
    def user_list(cls, generation: int) -> "CacheKey":
        """User list key tagged with the user-list generation."""
        generation = _check_generation(generation)
        return cls(f"{CacheFamily.USER_LIST.value}::{generation}::{EMPTY_FILTER}")

    @classmethod
    def user_books(cls, user_id: Union[str, UUID], generation: int) -> "CacheKey":
        """A user's owned-books key tagged with that user's generation."""
        generation = _check_generation(generation)
        return cls(
            f"{CacheFamily.USER_BOOKS.value}:{_canonical_id(user_id)}::{generation}"
        )

    @classmethod
    def generation(
        cls, family: CacheFamily, scope: Optional[Union[str, UUID]] = None
    ) -> "CacheKey":
        """
        Key holding the generation counter of a family.

        ``userBooks`` counters are scoped per user; the list families are global.
        """
        if family is CacheFamily.USER_BOOKS:
            if scope is None:
                raise ValueError("userBooks generation requires a user id scope")
            return cls(f"generation:{family.value}:{_canonical_id(scope)}")
        if scope is not None:
            raise ValueError(f"{family.value} generation is not scoped")
        return cls(f"generation:{family.value}")

    def __str__(self) -> str:
        return self.value


def derive_key(
    kind: Union[ResourceKind, CacheFamily],
    selector: Union[str, UUID, BookFilter, None] = None,
    generation: Optional[int] = None,
) -> CacheKey:
    """
    Map a (kind, identity | filter descriptor, generation) triple to a key.

    Single-entity kinds ignore the generation; family kinds require one.
    """
    if kind is ResourceKind.BOOK:
        return CacheKey.book(selector)
    if kind is ResourceKind.USER:
        return CacheKey.user(selector)

    if generation is None:
        raise ValueError(f"{kind.value} keys require a generation")

    if kind is CacheFamily.BOOK_LIST:
        return CacheKey.book_list(generation, selector or BookFilter())
    if kind is CacheFamily.USER_LIST:
        return CacheKey.user_list(generation)
    if kind is CacheFamily.USER_BOOKS:
        return CacheKey.user_books(selector, generation)

    raise ValueError(f"Unknown cache kind: {kind!r}")


@dataclass(frozen=True)
class TTL:
    """
    Time To Live value object for cache expiration.

    Provides type-safe TTL configuration with validation.
    """

    seconds: int

    def __post_init__(self) -> None:
        """Validate TTL value."""
        if self.seconds <= 0:
            raise ValueError("TTL must be positive")
        if self.seconds > MAX_ENTITY_TTL_SECONDS:
            raise ValueError(f"TTL too large (max {MAX_ENTITY_TTL_SECONDS}s)")

    @classmethod
    def minutes(cls, minutes: int) -> "TTL":
        """Create TTL from minutes."""
        return cls(minutes * 60)

    @classmethod
    def list_entry(cls, seconds: int = MAX_LIST_TTL_SECONDS) -> "TTL":
        """Lifetime for list and relation entries (at most 5 minutes)."""
        if seconds > MAX_LIST_TTL_SECONDS:
            raise ValueError(f"List TTL too large (max {MAX_LIST_TTL_SECONDS}s)")
        return cls(seconds)

    @classmethod
    def entity_entry(cls, seconds: int = MAX_ENTITY_TTL_SECONDS) -> "TTL":
        """Lifetime for single-entity entries (at most 1 hour)."""
        return cls(seconds)
