"""Shortlink repository for the durable storage tier.

This module provides the ShortlinkRepository class for database operations on
the append-only ``shortlinks`` table.
"""

from typing import Optional

from sqlalchemy import select, update, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.models.shortlink import ShortlinkEntry, ShortlinkRecord
from shortlinks.repositories.base import BaseRepository, RepositoryError


class ShortlinkRepository(BaseRepository[ShortlinkRecord, ShortlinkEntry]):
    """
    Repository for ShortlinkRecord rows.

    Rows are appended, never rewritten, apart from the consumed flag.
    Lookups always return the most recently created row for a token.
    """

    def __init__(self):
        """Initialize the repository with the ShortlinkRecord model type."""
        super().__init__(ShortlinkRecord)

    def _latest_id_for(self, token: str):
        return (
            select(self.model_type.id)
            .where(self.model_type.token == token)
            .order_by(desc(self.model_type.created_at), desc(self.model_type.id))
            .limit(1)
            .scalar_subquery()
        )

    async def append(self, db: AsyncSession, entry: ShortlinkEntry) -> ShortlinkRecord:
        """
        Append an immutable row for entry.

        Raises:
            RepositoryError: On database errors
        """
        return await self.create(db, entry.model_dump())

    async def get_latest_by_token(self, db: AsyncSession, token: str) -> Optional[ShortlinkRecord]:
        """
        Find the most recent row for a token.

        Returns:
            The ShortlinkRecord if found, None otherwise

        Raises:
            RepositoryError: On database errors
        """
        try:
            query = (
                select(self.model_type)
                .where(self.model_type.token == token)
                .order_by(desc(self.model_type.created_at), desc(self.model_type.id))
                .limit(1)
            )
            result = await db.execute(query)
            return result.scalars().first()
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error retrieving shortlink by token: {e}") from e

    async def mark_consumed(self, db: AsyncSession, token: str) -> bool:
        """
        Flip consumed from false to true on the latest row in one statement.

        The WHERE clause carries the check, so concurrent callers race inside
        the database and only one sees a row updated.

        Returns:
            True if this call performed the transition

        Raises:
            RepositoryError: On database errors
        """
        try:
            stmt = (
                update(self.model_type)
                .where(
                    self.model_type.id == self._latest_id_for(token),
                    self.model_type.consumed == False,  # noqa: E712
                )
                .values(consumed=True)
                .execution_options(synchronize_session=False)
            )
            result = await db.execute(stmt)
            return result.rowcount == 1
        except SQLAlchemyError as e:
            raise RepositoryError(f"Error marking shortlink consumed: {e}") from e
