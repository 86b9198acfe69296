"""Durable tier backed by the SQL database.

Rows are appended and kept indefinitely; expiry is evaluated at read time.
"""

import asyncio
from typing import Awaitable, Optional, TypeVar

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shortlinks.db.session import SessionManager
from shortlinks.models.shortlink import ShortlinkEntry
from shortlinks.repositories.base import RepositoryError
from shortlinks.repositories.shortlink_repository import ShortlinkRepository
from shortlinks.tiers.base import StorageTier, TierUnavailableError

T = TypeVar("T")

UNAVAILABLE_ERRORS = (RepositoryError, SQLAlchemyError, OSError, asyncio.TimeoutError)


class DurableTier(StorageTier):
    """
    SQL storage tier.

    ``mark_consumed`` is a conditional UPDATE committed in its own
    transaction, so the database arbitrates concurrent resolvers.
    """

    name = "durable"

    def __init__(
        self,
        session_manager: SessionManager,
        repository: Optional[ShortlinkRepository] = None,
        timeout: float = 2.0,
    ):
        self.session_manager = session_manager
        self.repository = repository or ShortlinkRepository()
        self.timeout = timeout

    async def _call(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    async def _append(self, entry: ShortlinkEntry) -> None:
        async with self.session_manager.transaction_context() as db:
            await self.repository.append(db, entry)

    async def _fetch(self, token: str) -> Optional[ShortlinkEntry]:
        async with self.session_manager.session() as db:
            record = await self.repository.get_latest_by_token(db, token)
            return record.to_entry() if record is not None else None

    async def _consume(self, token: str) -> bool:
        async with self.session_manager.transaction_context() as db:
            return await self.repository.mark_consumed(db, token)

    async def put(self, entry: ShortlinkEntry, ttl_seconds: Optional[int]) -> bool:
        # No native TTL: expires_at on the row is checked when read
        try:
            await self._call(self._append(entry))
        except UNAVAILABLE_ERRORS as e:
            logger.warning("Durable tier write failed", token=entry.token, error=repr(e))
            return False
        return True

    async def get(self, token: str) -> Optional[ShortlinkEntry]:
        try:
            return await self._call(self._fetch(token))
        except UNAVAILABLE_ERRORS as e:
            raise TierUnavailableError(self.name, repr(e)) from e

    async def mark_consumed(self, token: str) -> bool:
        try:
            return await self._call(self._consume(token))
        except UNAVAILABLE_ERRORS as e:
            raise TierUnavailableError(self.name, repr(e)) from e

    async def delete(self, token: str) -> bool:
        # Rows are retained for analytics; expiry is enforced on read
        return False

    async def ping(self) -> bool:
        async def _select_one() -> bool:
            async with self.session_manager.session() as db:
                result = await db.execute(text("SELECT 1"))
                return result.scalar_one() == 1

        try:
            return await self._call(_select_one())
        except UNAVAILABLE_ERRORS as e:
            logger.warning(f"Durable tier health check failed: {e!r}")
            return False
