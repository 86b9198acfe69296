"""Storage tier capability shared by the volatile, durable and memory tiers.

A tier reports availability problems through return values (``put``) or
``TierUnavailableError`` (reads and consumption) so the tiered store can
fall through to the next tier instead of failing the request.
"""

from abc import ABC, abstractmethod
from typing import Optional

from shortlinks.models.shortlink import ShortlinkEntry


class TierError(Exception):
    """Base exception for storage tier errors."""
    pass


class TierUnavailableError(TierError):
    """The tier's backend is unreachable or timed out."""

    def __init__(self, tier_name: str, reason: str):
        self.tier_name = tier_name
        self.reason = reason
        super().__init__(f"{tier_name} tier unavailable: {reason}")


class TokenConflictError(TierError):
    """The tier already holds an entry under this token."""

    def __init__(self, tier_name: str, token: str):
        self.tier_name = tier_name
        self.token = token
        super().__init__(f"Token {token} already exists in {tier_name} tier")


class StorageTier(ABC):
    """
    Common contract for shortlink storage tiers.

    Implementations must make ``mark_consumed`` a single atomic
    check-and-set: under concurrent calls for one token exactly one caller
    gets True.
    """

    name: str = "tier"

    @abstractmethod
    async def put(self, entry: ShortlinkEntry, ttl_seconds: Optional[int]) -> bool:
        """
        Write entry.

        Returns:
            True on success, False if the backend is unreachable

        Raises:
            TokenConflictError: If the tier already holds entry.token
        """

    @abstractmethod
    async def get(self, token: str) -> Optional[ShortlinkEntry]:
        """
        Return the stored entry, expired or not, or None.

        Raises:
            TierUnavailableError: If the backend is unreachable
        """

    @abstractmethod
    async def mark_consumed(self, token: str) -> bool:
        """
        Atomically flip consumed from false to true.

        Returns:
            True only for the caller that performed the transition

        Raises:
            TierUnavailableError: If the backend is unreachable
        """

    @abstractmethod
    async def delete(self, token: str) -> bool:
        """Remove the entry. Returns True if something was deleted."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
