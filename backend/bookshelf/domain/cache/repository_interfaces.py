"""
Cache Repository Interfaces

Abstract repository interface for the key-value cache backing the read path.
Implementations must keep every operation atomic at the single-key level.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from .value_objects import CacheKey, TTL


class CacheRepository(ABC):
    """
    Abstract repository for cache entries and generation counters.

    Entries are never authoritative: anything stored here can be rebuilt from
    the store. Expired entries must never be returned.
    """

    @abstractmethod
    async def get(self, key: CacheKey) -> Optional[Any]:
        """Return the cached value, or ``None`` on a miss."""
        pass

    @abstractmethod
    async def set(self, key: CacheKey, value: Any, ttl: TTL) -> None:
        """Store a value that expires after ``ttl``."""
        pass

    @abstractmethod
    async def delete(self, *keys: CacheKey) -> int:
        """Delete entries; returns the number actually removed."""
        pass

    @abstractmethod
    async def ttl(self, key: CacheKey) -> int:
        """Remaining lifetime in seconds (-2 when absent, -1 when persistent)."""
        pass

    @abstractmethod
    async def get_generation(self, key: CacheKey) -> int:
        """Current value of a generation counter; an absent counter is 0."""
        pass

    @abstractmethod
    async def bump_generation(self, key: CacheKey) -> int:
        """Atomically increment a generation counter and return the new value."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check that the backend answers."""
        pass
