"""In-process memory tier.

Always available and bounded only by process memory. Entries are reclaimed
by ``sweep``, which the scheduler runs on a fixed interval.
"""

import asyncio
from threading import Lock
from typing import Dict, Optional

from loguru import logger

from shortlinks.core.timeutils import Clock, utcnow
from shortlinks.models.shortlink import ShortlinkEntry
from shortlinks.tiers.base import StorageTier, TokenConflictError


class MemoryTier(StorageTier):
    """
    Token to entry mapping guarded by a lock.

    The lock is only ever held while one entry is read or modified, so the
    sweep never pauses concurrent lookups for longer than a single entry.
    """

    name = "memory"

    def __init__(self, clock: Clock = utcnow):
        self._store: Dict[str, ShortlinkEntry] = {}
        self._lock = Lock()
        self._clock = clock

    def __len__(self) -> int:
        return len(self._store)

    async def put(self, entry: ShortlinkEntry, ttl_seconds: Optional[int]) -> bool:
        # ttl_seconds is already reflected in entry.expires_at; the sweep enforces it
        with self._lock:
            if entry.token in self._store:
                raise TokenConflictError(self.name, entry.token)
            self._store[entry.token] = entry.model_copy()
        return True

    async def get(self, token: str) -> Optional[ShortlinkEntry]:
        with self._lock:
            entry = self._store.get(token)
            return entry.model_copy() if entry is not None else None

    async def mark_consumed(self, token: str) -> bool:
        with self._lock:
            entry = self._store.get(token)
            if entry is None or entry.consumed:
                return False
            self._store[token] = entry.model_copy(update={"consumed": True})
            return True

    async def delete(self, token: str) -> bool:
        with self._lock:
            return self._store.pop(token, None) is not None

    def _sweep_one(self, token: str, now) -> bool:
        with self._lock:
            entry = self._store.get(token)
            if entry is None:
                return False
            if entry.consumed or entry.is_expired(now):
                del self._store[token]
                return True
            return False

    async def sweep(self, batch_size: int = 500) -> int:
        """
        Delete every entry that is expired or consumed.

        Iterates over a snapshot of the keys, locking one entry at a time and
        yielding to the event loop after each batch.

        Returns:
            Number of entries deleted
        """
        now = self._clock()
        # list() over a dict is a single C-level copy, no lock needed
        tokens = list(self._store)

        deleted = 0
        for index, token in enumerate(tokens, start=1):
            if self._sweep_one(token, now):
                deleted += 1
            if batch_size and index % batch_size == 0:
                await asyncio.sleep(0)

        if deleted:
            logger.debug(f"Memory tier sweep removed {deleted} of {len(tokens)} entries")
        return deleted
