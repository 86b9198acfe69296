"""Analytics repositories.

Repositories for the ``events`` and ``recipient_mappings`` tables that make
up the analytics sink.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.models.event import (
    AnalyticsEvent,
    AnalyticsEventCreate,
    RecipientMapping,
    RecipientMappingCreate,
)
from shortlinks.repositories.base import BaseRepository


class EventRepository(BaseRepository[AnalyticsEvent, AnalyticsEventCreate]):
    """Repository for analytics event rows."""

    def __init__(self):
        super().__init__(AnalyticsEvent)

    async def insert_event(self, db: AsyncSession, event: AnalyticsEventCreate) -> AnalyticsEvent:
        return await self.create(db, event)


class RecipientMappingRepository(BaseRepository[RecipientMapping, RecipientMappingCreate]):
    """Repository for recipient identity mapping rows."""

    def __init__(self):
        super().__init__(RecipientMapping)

    async def insert_mapping(self, db: AsyncSession, mapping: RecipientMappingCreate) -> RecipientMapping:
        return await self.create(db, mapping)
