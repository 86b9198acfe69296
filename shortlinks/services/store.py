"""Tiered shortlink store.

Orchestrates writes and reads across the ordered tier list. A token lives in
exactly one tier: the first one that accepted the write.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from loguru import logger

from shortlinks.core.timeutils import utcnow
from shortlinks.models.shortlink import ShortlinkEntry
from shortlinks.services.exceptions import ShortlinkNotFoundError, StorageUnavailableError
from shortlinks.tiers.base import StorageTier, TierUnavailableError


@dataclass
class StoredEntry:
    """An entry together with the tier that holds it."""
    entry: ShortlinkEntry
    tier: StorageTier


class TieredStore:
    """
    Ordered fallback across storage tiers.

    Writes go to the first tier that reports success; later tiers are not
    written. Reads probe tiers in the same order and stop at the first live
    entry.
    """

    def __init__(self, tiers: Sequence[StorageTier]):
        if not tiers:
            raise ValueError("TieredStore needs at least one tier")
        self.tiers: List[StorageTier] = list(tiers)

    def tier_names(self) -> List[str]:
        return [tier.name for tier in self.tiers]

    async def put(self, entry: ShortlinkEntry, ttl_seconds: Optional[int]) -> str:
        """
        Write entry to the first tier that accepts it.

        Returns:
            Name of the tier that now holds the entry

        Raises:
            TokenConflictError: If the accepting tier already holds the token
            StorageUnavailableError: If every tier refused the write
        """
        for tier in self.tiers:
            if await tier.put(entry, ttl_seconds):
                logger.debug("Shortlink stored", token=entry.token, tier=tier.name)
                return tier.name
            logger.info("Tier refused write, falling through", tier=tier.name, token=entry.token)

        logger.error("All storage tiers refused write", token=entry.token, tiers=self.tier_names())
        raise StorageUnavailableError("No storage tier accepted the shortlink")

    async def get(self, token: str, now: Optional[datetime] = None) -> StoredEntry:
        """
        Find the entry for token.

        The first live entry wins. If the only entry found has expired it is
        returned so the caller can report expiry and purge it.

        Raises:
            ShortlinkNotFoundError: If no reachable tier holds the token
        """
        now = now or utcnow()
        expired: Optional[StoredEntry] = None

        for tier in self.tiers:
            try:
                entry = await tier.get(token)
            except TierUnavailableError as e:
                logger.warning("Tier unreachable during lookup", tier=tier.name, error=e.reason)
                continue

            if entry is None:
                continue
            if not entry.is_expired(now):
                return StoredEntry(entry=entry, tier=tier)
            if expired is None:
                expired = StoredEntry(entry=entry, tier=tier)

        if expired is not None:
            return expired
        raise ShortlinkNotFoundError(f"Shortlink '{token}' not found")

    async def health(self) -> Dict[str, bool]:
        return {tier.name: await tier.ping() for tier in self.tiers}
