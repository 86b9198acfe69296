"""Test utilities for shortlink tests."""

import asyncio
import random
import string
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Type

from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from shortlinks.models.event import AnalyticsEventCreate, RecipientMappingCreate
from shortlinks.models.shortlink import ShortlinkEntry
from shortlinks.services.sink import AnalyticsSink

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def random_string(length: int = 10) -> str:
    """Generate a random alphanumeric string."""
    return ''.join(random.choice(string.ascii_letters + string.digits) for _ in range(length))


def random_url() -> str:
    """Generate a random URL for testing."""
    domain = f"{random_string(8)}.com"
    path = random_string(12)
    return f"https://{domain}/{path}"


def make_entry(
    token: Optional[str] = None,
    url: Optional[str] = None,
    newsletter_id: Optional[str] = "n1",
    recipient_id: Optional[str] = "r1",
    created_at: Optional[datetime] = None,
    ttl_seconds: Optional[int] = None,
    consumed: bool = False,
) -> ShortlinkEntry:
    """Build a ShortlinkEntry with sensible defaults."""
    created_at = created_at or BASE_TIME
    return ShortlinkEntry(
        token=token or random_string(12).lower(),
        url=url or random_url(),
        newsletter_id=newsletter_id,
        recipient_id=recipient_id,
        created_at=created_at,
        expires_at=created_at + timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None,
        consumed=consumed,
    )


async def count_rows(db: AsyncSession, model: Type[SQLModel], **filters: Any) -> int:
    """Count rows of model matching field=value filters."""
    query = select(func.count()).select_from(model)
    conditions = [getattr(model, field) == value for field, value in filters.items()]
    if conditions:
        query = query.where(*conditions)
    result = await db.execute(query)
    return result.scalar_one()


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = BASE_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeRedis:
    """Dictionary-backed stand-in for the redis.asyncio commands the volatile tier uses."""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.expiry: Dict[str, float] = {}
        self._offset = 0.0
        self.closed = False

    def _now(self) -> float:
        return time.monotonic() + self._offset

    def advance(self, seconds: float) -> None:
        """Move the fake server clock forward so keys with a TTL lapse."""
        self._offset += seconds

    def _purge(self, key: str) -> None:
        deadline = self.expiry.get(key)
        if deadline is not None and self._now() >= deadline:
            self.data.pop(key, None)
            self.expiry.pop(key, None)

    async def get(self, key):
        self._purge(key)
        return self.data.get(key)

    async def set(self, key, value, ex=None, px=None, nx=False):
        self._purge(key)
        if nx and key in self.data:
            return None
        self.data[key] = value
        self.expiry.pop(key, None)
        if ex:
            self.expiry[key] = self._now() + ex
        elif px:
            self.expiry[key] = self._now() + px / 1000.0
        return True

    async def mget(self, *keys):
        values = []
        for key in keys:
            self._purge(key)
            values.append(self.data.get(key))
        return values

    async def pttl(self, key):
        self._purge(key)
        if key not in self.data:
            return -2
        deadline = self.expiry.get(key)
        if deadline is None:
            return -1
        return max(1, int((deadline - self._now()) * 1000))

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            self._purge(key)
            if key in self.data:
                del self.data[key]
                self.expiry.pop(key, None)
                removed += 1
        return removed

    async def ping(self):
        return True

    async def aclose(self):
        self.closed = True


class FailingRedis:
    """Redis client whose every command fails as if the server were down."""

    def __init__(self):
        self.calls = 0

    async def _fail(self, *args, **kwargs):
        self.calls += 1
        raise RedisConnectionError("Connection refused")

    get = set = mget = pttl = delete = ping = _fail


class HangingRedis(FakeRedis):
    """Redis client that never answers a write."""

    async def set(self, key, value, ex=None, px=None, nx=False):
        await asyncio.sleep(10)


class SlowAckRedis(FakeRedis):
    """Redis client that applies a write but answers too late."""

    async def set(self, key, value, ex=None, px=None, nx=False):
        await super().set(key, value, ex=ex, px=px, nx=nx)
        await asyncio.sleep(10)


class RecordingSink(AnalyticsSink):
    """Analytics sink that keeps rows in memory."""

    def __init__(self):
        self.events: List[AnalyticsEventCreate] = []
        self.mappings: List[RecipientMappingCreate] = []

    async def insert_event(self, event: AnalyticsEventCreate) -> None:
        self.events.append(event)

    async def insert_mapping(self, mapping: RecipientMappingCreate) -> None:
        self.mappings.append(mapping)


class FailingSink(AnalyticsSink):
    """Analytics sink whose every insert fails."""

    def __init__(self):
        self.attempts = 0

    async def insert_event(self, event: AnalyticsEventCreate) -> None:
        self.attempts += 1
        raise RuntimeError("sink {unavailable}")

    async def insert_mapping(self, mapping: RecipientMappingCreate) -> None:
        self.attempts += 1
        raise RuntimeError("sink unavailable")
