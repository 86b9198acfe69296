"""Tests for the SQL backed durable tier."""

import asyncio
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from shortlinks.repositories.shortlink_repository import ShortlinkRepository
from shortlinks.tiers.base import TierUnavailableError
from shortlinks.tiers.durable import DurableTier
from tests.utils import make_entry


@pytest.mark.tiers
class TestDurableTier:
    """Test suite for DurableTier."""

    @pytest.fixture
    def tier(self, session_manager):
        return DurableTier(session_manager, timeout=2.0)

    @pytest.mark.asyncio
    async def test_put_and_get(self, tier):
        entry = make_entry(token="abc123", newsletter_id="n1", recipient_id="r1")

        assert await tier.put(entry, None) is True
        stored = await tier.get("abc123")

        assert stored.url == entry.url
        assert stored.newsletter_id == "n1"
        assert stored.recipient_id == "r1"
        assert stored.consumed is False
        assert await tier.get("missing") is None

    @pytest.mark.asyncio
    async def test_get_returns_most_recent_row(self, tier):
        first = make_entry(token="same", url="https://example.com/old")
        second = make_entry(
            token="same",
            url="https://example.com/new",
            created_at=first.created_at + timedelta(seconds=1),
        )
        await tier.put(first, None)
        await tier.put(second, None)

        assert (await tier.get("same")).url == "https://example.com/new"

    @pytest.mark.asyncio
    async def test_expired_rows_are_returned_and_retained(self, tier):
        entry = make_entry(token="old", ttl_seconds=5)
        await tier.put(entry, 5)

        stored = await tier.get("old")
        assert stored.is_expired(entry.created_at + timedelta(seconds=5))
        assert await tier.delete("old") is False
        assert await tier.get("old") is not None

    @pytest.mark.asyncio
    async def test_mark_consumed_succeeds_once(self, tier):
        await tier.put(make_entry(token="once"), None)

        assert await tier.mark_consumed("once") is True
        assert await tier.mark_consumed("once") is False
        assert (await tier.get("once")).consumed is True

    @pytest.mark.asyncio
    async def test_concurrent_mark_consumed_has_one_winner(self, file_session_manager):
        tier = DurableTier(file_session_manager, timeout=30)
        await tier.put(make_entry(token="race"), None)

        results = await asyncio.gather(
            *(tier.mark_consumed("race") for _ in range(8)),
            return_exceptions=True,
        )

        assert results.count(True) == 1
        losers = [r for r in results if r is not True]
        assert all(r is False or isinstance(r, TierUnavailableError) for r in losers)
        assert (await tier.get("race")).consumed is True

    @pytest.mark.asyncio
    async def test_mark_consumed_unknown_token(self, tier):
        assert await tier.mark_consumed("missing") is False

    @pytest.mark.asyncio
    async def test_ping(self, tier):
        assert await tier.ping() is True

    @pytest.mark.asyncio
    async def test_database_errors_are_unavailability(self, session_manager, monkeypatch):
        repository = ShortlinkRepository()

        async def broken(*args, **kwargs):
            raise OperationalError("SELECT 1", {}, Exception("database is down"))

        monkeypatch.setattr(repository, "append", broken)
        monkeypatch.setattr(repository, "get_latest_by_token", broken)
        monkeypatch.setattr(repository, "mark_consumed", broken)
        tier = DurableTier(session_manager, repository=repository)

        assert await tier.put(make_entry(token="x"), None) is False
        with pytest.raises(TierUnavailableError):
            await tier.get("x")
        with pytest.raises(TierUnavailableError):
            await tier.mark_consumed("x")
