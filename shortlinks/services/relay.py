"""Best-effort click relay.

Click events are written to the analytics sink from detached tasks. The
resolve path never waits on them and never sees their failures.
"""

import asyncio
from typing import Optional, Set

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from shortlinks.core.timeutils import Clock, utcnow
from shortlinks.models.event import AnalyticsEventCreate, bounded_user_agent
from shortlinks.models.shortlink import ShortlinkEntry
from shortlinks.services.exceptions import RelayFailure
from shortlinks.services.sink import AnalyticsSink

CLICK_EVENT_TYPE = "click"


class EventRelay:
    """
    Fire-and-forget dispatcher for analytics events.

    Pending tasks are tracked so they are not garbage collected mid-flight
    and so ``drain`` can wait for them at shutdown.
    """

    def __init__(
        self,
        sink: AnalyticsSink,
        source_tag: str = "shortlink",
        timeout: float = 5.0,
        clock: Clock = utcnow,
    ):
        self.sink = sink
        self.source_tag = source_tag
        self.timeout = timeout
        self.clock = clock
        self._tasks: Set[asyncio.Task] = set()
        self.failures = 0

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def click_event(self, entry: ShortlinkEntry, user_agent: Optional[str] = None) -> AnalyticsEventCreate:
        """Build the click record for a resolved entry."""
        return AnalyticsEventCreate(
            event_timestamp=self.clock(),
            source=self.source_tag,
            event_type=CLICK_EVENT_TYPE,
            newsletter_id=entry.newsletter_id,
            recipient_id=entry.recipient_id,
            url=entry.url,
            user_agent=bounded_user_agent(user_agent),
        )

    def log_click(self, entry: ShortlinkEntry, user_agent: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Dispatch the click event for entry without waiting for the outcome.

        An event that cannot be built is counted and logged as a relay
        failure; nothing is raised to the caller.
        """
        try:
            event = self.click_event(entry, user_agent=user_agent)
        except PydanticValidationError as e:
            self._record_failure(
                RelayFailure(f"Failed to build click event: {e.error_count()} invalid fields"),
                entry.newsletter_id,
                entry.recipient_id,
            )
            return None
        return self.log(event)

    def log(self, event: AnalyticsEventCreate) -> asyncio.Task:
        """
        Dispatch event without waiting for the outcome.

        Must be called from a running event loop.
        """
        task = asyncio.get_running_loop().create_task(self._deliver(event))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _record_failure(
        self,
        failure: RelayFailure,
        newsletter_id: Optional[str],
        recipient_id: Optional[str],
    ) -> None:
        self.failures += 1
        logger.bind(newsletter_id=newsletter_id, recipient_id=recipient_id).error(str(failure))

    async def _deliver(self, event: AnalyticsEventCreate) -> None:
        try:
            await asyncio.wait_for(self.sink.insert_event(event), timeout=self.timeout)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._record_failure(
                RelayFailure(f"Failed to relay {event.event_type} event: {e!r}"),
                event.newsletter_id,
                event.recipient_id,
            )

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait for in-flight dispatches, cancelling any still running after timeout."""
        if not self._tasks:
            return
        pending = list(self._tasks)
        logger.info(f"Draining {len(pending)} pending relay tasks")
        _, still_running = await asyncio.wait(pending, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} relay tasks at shutdown")
