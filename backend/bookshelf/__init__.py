"""Bookshelf API: books, users and ownership behind a consistent read-through cache."""

from .constants import APP_VERSION as __version__

__all__ = ["__version__"]
