"""Analytics sink.

The sink is where click events, tracked events and recipient mappings end
up. The SQL implementation writes to the ``events`` and
``recipient_mappings`` tables.
"""

from abc import ABC, abstractmethod

from shortlinks.db.session import SessionManager
from shortlinks.models.event import AnalyticsEventCreate, RecipientMappingCreate
from shortlinks.repositories.event_repository import EventRepository, RecipientMappingRepository


class AnalyticsSink(ABC):
    """Destination for analytics rows."""

    @abstractmethod
    async def insert_event(self, event: AnalyticsEventCreate) -> None:
        """Persist one event row."""

    @abstractmethod
    async def insert_mapping(self, mapping: RecipientMappingCreate) -> None:
        """Persist one recipient mapping row."""


class SqlAnalyticsSink(AnalyticsSink):
    """Analytics sink writing each row in its own transaction."""

    def __init__(
        self,
        session_manager: SessionManager,
        event_repository: EventRepository = None,
        mapping_repository: RecipientMappingRepository = None,
    ):
        self.session_manager = session_manager
        self.event_repository = event_repository or EventRepository()
        self.mapping_repository = mapping_repository or RecipientMappingRepository()

    async def insert_event(self, event: AnalyticsEventCreate) -> None:
        async with self.session_manager.transaction_context() as db:
            await self.event_repository.insert_event(db, event)

    async def insert_mapping(self, mapping: RecipientMappingCreate) -> None:
        async with self.session_manager.transaction_context() as db:
            await self.mapping_repository.insert_mapping(db, mapping)
