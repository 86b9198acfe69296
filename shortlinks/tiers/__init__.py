"""Storage tiers for shortlink entries.

Tiers are probed in the order volatile, durable, memory.
"""

from shortlinks.tiers.base import StorageTier, TierError, TierUnavailableError, TokenConflictError
from shortlinks.tiers.durable import DurableTier
from shortlinks.tiers.memory import MemoryTier
from shortlinks.tiers.volatile import VolatileTier

__all__ = [
    "StorageTier",
    "TierError",
    "TierUnavailableError",
    "TokenConflictError",
    "VolatileTier",
    "DurableTier",
    "MemoryTier",
]
