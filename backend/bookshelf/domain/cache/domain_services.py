"""
Cache Domain Services

Invalidation policy for the write path. ``plan_invalidation`` maps a
mutation to the generation counters to bump and the entity keys to delete;
``CacheInvalidationService`` applies a plan after the store write committed.

List families are invalidated by bumping their generation: every previously
issued list key for the family becomes unreachable at once, whatever filter
combinations were served, and the orphans expire through their TTL.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Tuple, Union
from uuid import UUID

import structlog
from opentelemetry import trace

from ...core.monitoring import CACHE_INVALIDATIONS
from ...infrastructure.redis.exceptions import (
    CacheException,
    CacheInvalidationException,
)
from .repository_interfaces import CacheRepository
from .value_objects import CacheFamily, CacheKey

logger = structlog.get_logger()
tracer = trace.get_tracer(__name__)


class MutationKind(str, Enum):
    """Store mutations that can make cache entries stale."""

    BOOK_CREATED = "book_created"
    BOOK_UPDATED = "book_updated"
    BOOK_DELETED = "book_deleted"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_DELETED = "user_deleted"
    OWNERSHIP_ASSIGNED = "ownership_assigned"
    OWNERSHIP_REMOVED = "ownership_removed"


def _unique_ids(ids: Iterable[Union[str, UUID]]) -> Tuple[UUID, ...]:
    seen = []
    for value in ids:
        identifier = value if isinstance(value, UUID) else UUID(str(value))
        if identifier not in seen:
            seen.append(identifier)
    return tuple(seen)


@dataclass(frozen=True)
class MutationEvent:
    """
    A committed store mutation.

    ``owner_ids`` lists the users whose owned-books lists are affected: the
    owners of an updated or deleted book, or the user of an ownership edge.
    """

    kind: MutationKind
    entity_id: Optional[UUID] = None
    owner_ids: Tuple[UUID, ...] = field(default_factory=tuple)

    @classmethod
    def book_created(cls, book_id: UUID) -> "MutationEvent":
        return cls(MutationKind.BOOK_CREATED, book_id)

    @classmethod
    def book_updated(cls, book_id: UUID, owner_ids: Iterable[UUID] = ()) -> "MutationEvent":
        return cls(MutationKind.BOOK_UPDATED, book_id, _unique_ids(owner_ids))

    @classmethod
    def book_deleted(cls, book_id: UUID, owner_ids: Iterable[UUID] = ()) -> "MutationEvent":
        return cls(MutationKind.BOOK_DELETED, book_id, _unique_ids(owner_ids))

    @classmethod
    def user_created(cls, user_id: UUID) -> "MutationEvent":
        return cls(MutationKind.USER_CREATED, user_id)

    @classmethod
    def user_updated(cls, user_id: UUID) -> "MutationEvent":
        return cls(MutationKind.USER_UPDATED, user_id)

    @classmethod
    def user_deleted(cls, user_id: UUID) -> "MutationEvent":
        return cls(MutationKind.USER_DELETED, user_id, (user_id,))

    @classmethod
    def ownership_assigned(cls, user_id: UUID, book_id: UUID) -> "MutationEvent":
        return cls(MutationKind.OWNERSHIP_ASSIGNED, book_id, (user_id,))

    @classmethod
    def ownership_removed(cls, user_id: UUID, book_id: UUID) -> "MutationEvent":
        return cls(MutationKind.OWNERSHIP_REMOVED, book_id, (user_id,))


@dataclass(frozen=True)
class InvalidationPlan:
    """Generation counters to bump and entity keys to delete."""

    bump: Tuple[CacheKey, ...] = ()
    delete: Tuple[CacheKey, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.bump and not self.delete


def plan_invalidation(event: MutationEvent) -> InvalidationPlan:
    """
    Minimal invalidation that keeps every later read consistent with the
    post-mutation store state.

    | mutation         | bump                               | delete     |
    |------------------|------------------------------------|------------|
    | book created     | booksList                          |            |
    | book updated     | booksList, userBooks of owners     | book:<id>  |
    | book deleted     | booksList, userBooks of owners     | book:<id>  |
    | user created     | usersList                          |            |
    | user updated     | usersList                          | user:<id>  |
    | user deleted     | usersList, userBooks:<id>          | user:<id>  |
    | ownership change | userBooks of that user             |            |
    """
    user_books = tuple(
        CacheKey.generation(CacheFamily.USER_BOOKS, user_id)
        for user_id in event.owner_ids
    )
    book_list = CacheKey.generation(CacheFamily.BOOK_LIST)
    user_list = CacheKey.generation(CacheFamily.USER_LIST)

    kind = event.kind
    if kind is MutationKind.BOOK_CREATED:
        return InvalidationPlan(bump=(book_list,))
    if kind in (MutationKind.BOOK_UPDATED, MutationKind.BOOK_DELETED):
        return InvalidationPlan(
            bump=(book_list,) + user_books,
            delete=(CacheKey.book(event.entity_id),),
        )
    if kind is MutationKind.USER_CREATED:
        return InvalidationPlan(bump=(user_list,))
    if kind is MutationKind.USER_UPDATED:
        return InvalidationPlan(
            bump=(user_list,), delete=(CacheKey.user(event.entity_id),)
        )
    if kind is MutationKind.USER_DELETED:
        return InvalidationPlan(
            bump=(user_list,) + user_books,
            delete=(CacheKey.user(event.entity_id),),
        )
    if kind in (MutationKind.OWNERSHIP_ASSIGNED, MutationKind.OWNERSHIP_REMOVED):
        return InvalidationPlan(bump=user_books)

    raise ValueError(f"Unknown mutation kind: {kind!r}")


class CacheInvalidationService:
    """
    Applies invalidation plans against the cache repository.

    Must only be called after the triggering store write has been committed.
    Failures propagate as ``CacheInvalidationException``.
    """

    def __init__(self, cache_repository: CacheRepository):
        self.cache_repository = cache_repository

    async def apply(self, event: MutationEvent) -> InvalidationPlan:
        """Invalidate everything the mutation could have made stale."""
        plan = plan_invalidation(event)

        with tracer.start_as_current_span("cache.invalidate") as span:
            span.set_attribute("mutation", event.kind.value)
            span.set_attribute("bump_count", len(plan.bump))
            span.set_attribute("delete_count", len(plan.delete))

            try:
                if plan.delete:
                    await self.cache_repository.delete(*plan.delete)
                    CACHE_INVALIDATIONS.labels(action="delete").inc(len(plan.delete))
                for key in plan.bump:
                    await self.cache_repository.bump_generation(key)
                    CACHE_INVALIDATIONS.labels(action="bump").inc()
            except CacheException as e:
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.error(
                    "Cache invalidation failed after committed mutation",
                    mutation=event.kind.value,
                    entity_id=str(event.entity_id) if event.entity_id else None,
                    error=str(e),
                )
                raise CacheInvalidationException(event.kind.value, original_error=e)

        logger.info(
            "Cache invalidated",
            mutation=event.kind.value,
            entity_id=str(event.entity_id) if event.entity_id else None,
            bumped=[key.value for key in plan.bump],
            deleted=[key.value for key in plan.delete],
        )
        return plan
