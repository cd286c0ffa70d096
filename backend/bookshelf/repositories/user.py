"""
User Repository
"""

from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import User
from .base import BaseRepository, run_store_operation


class UserRepository(BaseRepository):
    """User-specific repository."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, User)

    async def list_all(self) -> List[User]:
        stmt = select(User).order_by(User.name, User.id)
        result = await run_store_operation("users.list", self.session.execute(stmt))
        return list(result.scalars().all())
