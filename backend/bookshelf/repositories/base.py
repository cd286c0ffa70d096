"""
Base Repository

Every store call goes through ``run_store_operation``: bounded by the
configured timeout, timed, and with driver failures raised as
``StoreUnavailableException``.
"""

import asyncio
from typing import Awaitable, Optional, Type, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_settings
from ..core.exceptions import StoreUnavailableException
from ..core.monitoring import observe_store_operation
from ..models import Base

logger = structlog.get_logger()

T = TypeVar("T")


async def run_store_operation(operation: str, awaitable: Awaitable[T]) -> T:
    """
    Await a store call with timeout, metrics and error mapping.

    Raises:
        StoreUnavailableException: On timeout or any SQLAlchemy error
    """
    timeout = get_settings().STORE_OPERATION_TIMEOUT_SECONDS
    with observe_store_operation(operation):
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(
                "Repository: Store operation timed out",
                operation=operation,
                timeout_seconds=timeout,
            )
            raise StoreUnavailableException(
                operation, original_error=e, timeout_seconds=timeout
            )
        except SQLAlchemyError as e:
            logger.error(
                "Repository: Store operation failed",
                operation=operation,
                error=str(e),
                exc_info=True,
            )
            raise StoreUnavailableException(operation, original_error=e)


class BaseRepository:
    """
    Base repository for entity models keyed by a UUID ``id``.

    Repositories flush but never commit on their own; the service owning the
    unit of work commits before any cache invalidation runs.
    """

    def __init__(self, session: AsyncSession, model: Type[Base]):
        """
        Raises:
            TypeError: If session is not AsyncSession or model is invalid
        """
        if not isinstance(session, AsyncSession):
            raise TypeError(
                f"session must be AsyncSession instance, got {type(session).__name__}"
            )
        if not model or not hasattr(model, "__tablename__"):
            raise TypeError(
                f"model must be valid SQLAlchemy model with __tablename__, got {type(model).__name__}"
            )

        self.session = session
        self.model = model

    @property
    def _name(self) -> str:
        return self.model.__tablename__

    async def get(self, id: UUID) -> Optional[Base]:
        """Return the entity, or ``None`` when no record has this id."""
        stmt = select(self.model).where(self.model.id == id)
        result = await run_store_operation(
            f"{self._name}.get", self.session.execute(stmt)
        )
        entity = result.scalar_one_or_none()

        if entity is not None:
            logger.debug(
                "Repository: Entity retrieved",
                model=self.model.__name__,
                entity_id=str(id),
            )
        return entity

    async def add(self, entity: Base) -> Base:
        """Stage a new entity and flush to obtain server state."""
        self.session.add(entity)
        await run_store_operation(f"{self._name}.insert", self.session.flush())
        logger.info(
            "Repository: Entity created",
            model=self.model.__name__,
            entity_id=str(entity.id),
        )
        return entity

    async def update(self, entity: Base, **changes) -> Base:
        """Apply attribute changes and flush."""
        for field, value in changes.items():
            if not hasattr(entity, field):
                raise ValueError(f"Unknown field for {self.model.__name__}: {field}")
            setattr(entity, field, value)

        await run_store_operation(f"{self._name}.update", self.session.flush())
        logger.info(
            "Repository: Entity updated",
            model=self.model.__name__,
            entity_id=str(entity.id),
            fields=sorted(changes),
        )
        return entity

    async def delete(self, entity: Base) -> None:
        await run_store_operation(f"{self._name}.delete", self.session.delete(entity))
        await run_store_operation(f"{self._name}.delete", self.session.flush())
        logger.info(
            "Repository: Entity deleted",
            model=self.model.__name__,
            entity_id=str(entity.id),
        )

    async def commit(self) -> None:
        """Commit the session's unit of work."""
        await run_store_operation("commit", self.session.commit())
