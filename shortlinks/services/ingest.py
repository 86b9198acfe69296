"""Ingestion service for raw analytics events and identity mappings.

These are thin validated pass-throughs to the analytics sink.
"""

from typing import Optional

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from shortlinks.core.timeutils import Clock, utcnow
from shortlinks.models.event import AnalyticsEventCreate, RecipientMappingCreate, bounded_user_agent
from shortlinks.services.exceptions import IngestError, ValidationError
from shortlinks.services.signatures import SignatureVerifier
from shortlinks.services.sink import AnalyticsSink


def _present(value: Optional[str]) -> bool:
    return value is not None and str(value).strip() != ""


class IngestService:
    """
    Service backing the /track and /map endpoints.

    Validation and signature checks happen before the sink is touched.
    """

    def __init__(self, sink: AnalyticsSink, verifier: SignatureVerifier, clock: Clock = utcnow):
        self.sink = sink
        self.verifier = verifier
        self.clock = clock

    async def track(
        self,
        event_type: Optional[str],
        newsletter_id: Optional[str],
        recipient_hash: Optional[str] = None,
        url: Optional[str] = None,
        duration_sec: Optional[float] = None,
        event_detail: Optional[str] = None,
        source: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AnalyticsEventCreate:
        """
        Record a raw analytics event.

        Raises:
            ValidationError: If event_type or newsletter_id is missing, or a
                field is longer than its column
            IngestError: If the sink insert fails
        """
        if not _present(event_type) or not _present(newsletter_id):
            logger.warning("Received invalid event", event_type=event_type, newsletter_id=newsletter_id)
            raise ValidationError("Missing required event fields.")

        try:
            event = AnalyticsEventCreate(
                event_timestamp=self.clock(),
                source=source,
                event_type=event_type,
                event_detail=event_detail,
                newsletter_id=newsletter_id,
                recipient_id=recipient_hash or None,
                url=url or None,
                duration_sec=duration_sec,
                user_agent=bounded_user_agent(user_agent),
            )
        except PydanticValidationError as e:
            logger.warning("Received oversized event fields", errors=e.error_count())
            raise ValidationError("Invalid event fields.") from e
        try:
            await self.sink.insert_event(event)
        except Exception as e:
            logger.error(f"Failed to insert event into analytics sink: {e!r}")
            raise IngestError("Failed to record event") from e
        return event

    async def map_recipient(
        self,
        recipient_hash: Optional[str],
        email: Optional[str],
        email_hash: Optional[str],
        newsletter_id: Optional[str],
        signature: Optional[str],
    ) -> RecipientMappingCreate:
        """
        Record a signed recipient identity mapping.

        The signature covers ``recipientHash|email|emailHash|newsletterId``.

        Raises:
            ValidationError: If any field is missing or oversized
            AuthError: If the secret is not configured or the signature is wrong
            IngestError: If the sink insert fails
        """
        fields = [recipient_hash, email, email_hash, newsletter_id]
        if not all(_present(field) for field in fields):
            raise ValidationError("Missing required mapping fields.")

        self.verifier.verify(fields, signature)

        try:
            mapping = RecipientMappingCreate(
                recipient_hash=recipient_hash,
                email=email,
                email_hash=email_hash,
                newsletter_id=newsletter_id,
            )
        except PydanticValidationError as e:
            raise ValidationError("Invalid mapping fields.") from e
        try:
            await self.sink.insert_mapping(mapping)
        except Exception as e:
            logger.error(f"Failed to insert recipient mapping: {e!r}")
            raise IngestError("Failed to record mapping") from e
        return mapping
