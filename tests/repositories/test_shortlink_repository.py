"""Tests for the shortlink and analytics repositories."""

from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from shortlinks.models.event import AnalyticsEvent, AnalyticsEventCreate, RecipientMappingCreate
from shortlinks.models.shortlink import ShortlinkRecord
from shortlinks.repositories.base import RepositoryError
from shortlinks.repositories.event_repository import EventRepository, RecipientMappingRepository
from shortlinks.repositories.shortlink_repository import ShortlinkRepository
from tests.utils import BASE_TIME, count_rows, make_entry


@pytest.mark.repository
class TestShortlinkRepository:
    """Test suite for ShortlinkRepository."""

    @pytest.fixture
    def shortlink_repository(self):
        """Return shortlink repository instance."""
        return ShortlinkRepository()

    @pytest.mark.asyncio
    async def test_tables_are_created(self, test_db):
        result = await test_db.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
        tables = {row[0] for row in result.fetchall()}
        assert {"shortlinks", "events", "recipient_mappings"} <= tables

    @pytest.mark.asyncio
    async def test_append_keeps_every_row(self, test_db, shortlink_repository):
        entry = make_entry(token="dup")
        await shortlink_repository.append(test_db, entry)
        await shortlink_repository.append(
            test_db, make_entry(token="dup", created_at=entry.created_at + timedelta(seconds=1))
        )

        assert await count_rows(test_db, ShortlinkRecord, token="dup") == 2

    @pytest.mark.asyncio
    async def test_get_latest_by_token(self, test_db, shortlink_repository):
        older = make_entry(token="tok", url="https://example.com/1")
        newer = make_entry(
            token="tok",
            url="https://example.com/2",
            created_at=older.created_at + timedelta(minutes=1),
        )
        await shortlink_repository.append(test_db, newer)
        await shortlink_repository.append(test_db, older)

        record = await shortlink_repository.get_latest_by_token(test_db, "tok")

        assert record.url == "https://example.com/2"
        assert record.to_entry().token == "tok"
        assert await shortlink_repository.get_latest_by_token(test_db, "missing") is None

    @pytest.mark.asyncio
    async def test_timestamps_come_back_as_aware_utc(self, test_db, shortlink_repository):
        entry = make_entry(token="tz", ttl_seconds=30)
        await shortlink_repository.append(test_db, entry)
        test_db.expire_all()

        record = await shortlink_repository.get_latest_by_token(test_db, "tz")
        stored = record.to_entry()

        assert stored.created_at == BASE_TIME
        assert stored.created_at.utcoffset() == timedelta(0)
        assert stored.expires_at == BASE_TIME + timedelta(seconds=30)
        assert stored.is_expired(BASE_TIME + timedelta(seconds=30))
        assert not stored.is_expired(BASE_TIME + timedelta(seconds=29))

    @pytest.mark.asyncio
    async def test_mark_consumed_only_touches_latest_row(self, test_db, shortlink_repository):
        older = make_entry(token="tok")
        newer = make_entry(token="tok", created_at=older.created_at + timedelta(minutes=1))
        await shortlink_repository.append(test_db, older)
        await shortlink_repository.append(test_db, newer)

        assert await shortlink_repository.mark_consumed(test_db, "tok") is True
        assert await shortlink_repository.mark_consumed(test_db, "tok") is False
        assert await count_rows(test_db, ShortlinkRecord, token="tok", consumed=True) == 1

    @pytest.mark.asyncio
    async def test_database_error_handling(self, test_db, shortlink_repository):
        with patch.object(test_db, "execute", side_effect=SQLAlchemyError("Test database error")):
            with pytest.raises(RepositoryError) as excinfo:
                await shortlink_repository.get_latest_by_token(test_db, "tok")
            assert "Test database error" in str(excinfo.value)

            with pytest.raises(RepositoryError):
                await shortlink_repository.mark_consumed(test_db, "tok")


@pytest.mark.repository
class TestAnalyticsRepositories:
    """Test suite for the event and recipient mapping repositories."""

    @pytest.mark.asyncio
    async def test_insert_event(self, test_db):
        repository = EventRepository()
        event = await repository.insert_event(
            test_db,
            AnalyticsEventCreate(event_type="click", newsletter_id="n1", recipient_id="r1"),
        )

        assert event.id is not None
        assert event.event_timestamp.utcoffset() == timedelta(0)
        assert await count_rows(test_db, AnalyticsEvent, event_type="click", newsletter_id="n1") == 1

    @pytest.mark.asyncio
    async def test_insert_mapping(self, test_db):
        repository = RecipientMappingRepository()
        mapping = await repository.insert_mapping(
            test_db,
            RecipientMappingCreate(
                recipient_hash="rh", email="a@example.com", email_hash="eh", newsletter_id="n1"
            ),
        )

        assert mapping.id is not None
        assert mapping.created_at is not None
