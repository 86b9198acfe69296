"""Volatile tier backed by Redis.

Entries are JSON strings under ``{prefix}:{token}``. Keys carry the entry TTL
plus a grace period, so a read after ``expires_at`` still sees the entry and
reports it expired; Redis drops it once the grace period lapses. Consumption
is claimed with ``SET NX`` on a marker key ``{prefix}:{token}:consumed`` so
exactly one resolver wins.
"""

import asyncio
from typing import Any, Awaitable, Optional, TypeVar

from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError

from shortlinks.models.shortlink import ShortlinkEntry
from shortlinks.tiers.base import StorageTier, TierUnavailableError, TokenConflictError

T = TypeVar("T")

UNAVAILABLE_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class VolatileTier(StorageTier):
    """
    Redis storage tier.

    Every command is bounded by ``timeout`` seconds; a hung or unreachable
    server is reported as unavailability, never as an exception escaping
    ``put``.
    """

    name = "volatile"

    def __init__(
        self,
        client: Any,
        key_prefix: str = "shortlink",
        timeout: float = 0.5,
        expiry_grace_seconds: int = 300,
    ):
        self.client = client
        self.key_prefix = key_prefix
        self.timeout = timeout
        self.expiry_grace_seconds = expiry_grace_seconds

    def entry_key(self, token: str) -> str:
        return f"{self.key_prefix}:{token}"

    def consumed_key(self, token: str) -> str:
        return f"{self.key_prefix}:{token}:consumed"

    async def _call(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.timeout)

    async def put(self, entry: ShortlinkEntry, ttl_seconds: Optional[int]) -> bool:
        payload = entry.model_dump_json(exclude={"consumed"})
        key = self.entry_key(entry.token)
        try:
            created = await self._call(
                self.client.set(
                    key,
                    payload,
                    nx=True,
                    ex=ttl_seconds + self.expiry_grace_seconds if ttl_seconds else None,
                )
            )
        except asyncio.TimeoutError as e:
            logger.warning("Volatile tier write timed out", token=entry.token, error=repr(e))
            await self._discard_late_write(key, payload)
            return False
        except UNAVAILABLE_ERRORS as e:
            logger.warning("Volatile tier write failed", token=entry.token, error=repr(e))
            return False

        if not created:
            raise TokenConflictError(self.name, entry.token)
        return True

    async def _discard_late_write(self, key: str, payload: str) -> None:
        """
        Remove our entry if the server applied a SET the client gave up on.

        The caller falls through to the next tier, so a late apply would
        otherwise leave the token in two tiers. Only a key holding exactly
        our payload is removed.
        """
        try:
            if await self._call(self.client.get(key)) == payload:
                await self._call(self.client.delete(key))
        except UNAVAILABLE_ERRORS as e:
            logger.warning("Could not discard timed out volatile write", key=key, error=repr(e))

    async def get(self, token: str) -> Optional[ShortlinkEntry]:
        try:
            payload, marker = await self._call(
                self.client.mget(self.entry_key(token), self.consumed_key(token))
            )
        except UNAVAILABLE_ERRORS as e:
            raise TierUnavailableError(self.name, repr(e)) from e

        if payload is None:
            return None
        try:
            entry = ShortlinkEntry.model_validate_json(payload)
        except PydanticValidationError as e:
            logger.error("Discarding unreadable volatile entry", token=token, error=str(e))
            return None
        if marker is not None:
            entry.consumed = True
        return entry

    async def mark_consumed(self, token: str) -> bool:
        try:
            remaining_ms = await self._call(self.client.pttl(self.entry_key(token)))
            if remaining_ms == -2:
                # Entry already gone
                return False
            claimed = await self._call(
                self.client.set(
                    self.consumed_key(token),
                    "1",
                    nx=True,
                    px=remaining_ms if remaining_ms > 0 else None,
                )
            )
        except UNAVAILABLE_ERRORS as e:
            raise TierUnavailableError(self.name, repr(e)) from e
        return bool(claimed)

    async def delete(self, token: str) -> bool:
        try:
            removed = await self._call(
                self.client.delete(self.entry_key(token), self.consumed_key(token))
            )
        except UNAVAILABLE_ERRORS as e:
            logger.warning("Volatile tier delete failed", token=token, error=repr(e))
            return False
        return bool(removed)

    async def ping(self) -> bool:
        try:
            return bool(await self._call(self.client.ping()))
        except UNAVAILABLE_ERRORS:
            return False
