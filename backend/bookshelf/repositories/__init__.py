"""
Repository Pattern Implementation

Store access for books, users and their ownership edges. Repositories flush
but never commit; services own the unit of work.
"""

from .base import BaseRepository, run_store_operation
from .book import BookRepository
from .ownership import OwnershipRepository
from .user import UserRepository

__all__ = [
    "BaseRepository",
    "BookRepository",
    "OwnershipRepository",
    "UserRepository",
    "run_store_operation",
]
