"""Repository layer for the shortlink service.

This module provides repository classes that abstract database operations
and implement the Repository pattern for clean separation of concerns.
"""

from shortlinks.repositories.base import BaseRepository, RepositoryError
from shortlinks.repositories.shortlink_repository import ShortlinkRepository
from shortlinks.repositories.event_repository import EventRepository, RecipientMappingRepository

__all__ = [
    # Base classes and exceptions
    "BaseRepository",
    "RepositoryError",

    # Concrete repositories
    "ShortlinkRepository",
    "EventRepository",
    "RecipientMappingRepository",
]
