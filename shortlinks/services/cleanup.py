"""Cleanup service for the shortlink service.

This module contains the CleanupService class which removes expired and
consumed entries from the memory tier, the only tier without native expiry.
"""

import time
from typing import Any, Dict

from loguru import logger

from shortlinks.core.timeutils import utcnow
from shortlinks.services.exceptions import CleanupError
from shortlinks.tiers.memory import MemoryTier


class CleanupService:
    """
    Service for periodic maintenance of the memory tier.

    Designed to be called by the scheduler on a fixed interval.
    """

    def __init__(self, memory_tier: MemoryTier, batch_size: int = 500):
        """
        Initialize the cleanup service.

        Args:
            memory_tier: The in-process tier to sweep
            batch_size: Entries inspected between event loop yields
        """
        self.memory_tier = memory_tier
        self.batch_size = batch_size

    async def sweep_memory_tier(self) -> Dict[str, Any]:
        """
        Delete expired and consumed entries from the memory tier.

        Returns:
            Dict with statistics about the sweep

        Raises:
            CleanupError: If the sweep fails
        """
        start = time.perf_counter()
        remaining_before = len(self.memory_tier)
        try:
            deleted = await self.memory_tier.sweep(batch_size=self.batch_size)
        except Exception as e:
            logger.error(f"Error during memory tier sweep: {e!r}")
            raise CleanupError(f"Failed to sweep memory tier: {e}") from e

        execution_time = time.perf_counter() - start
        logger.info(
            f"Sweep completed: {deleted} of {remaining_before} entries deleted in {execution_time:.3f}s"
        )
        return {
            "processed": remaining_before,
            "deleted": deleted,
            "remaining": len(self.memory_tier),
            "execution_time": execution_time,
            "timestamp": utcnow().isoformat(),
        }
