"""
Analytics sink data models.

This module defines the event and recipient-mapping tables written by the
click relay and the ingestion endpoints.
"""

from datetime import datetime
from typing import Optional

from pydantic import field_validator
from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from shortlinks.core.timeutils import ensure_utc, utcnow
from shortlinks.models.shortlink import IDENTIFIER_MAX_LENGTH
from shortlinks.models.types import UTCDateTime

USER_AGENT_MAX_LENGTH = 1024


def bounded_user_agent(user_agent: Optional[str]) -> Optional[str]:
    """Cut a client supplied User-Agent down to the column size."""
    if user_agent is None:
        return None
    return user_agent[:USER_AGENT_MAX_LENGTH]


class AnalyticsEventBase(SQLModel):
    """Base model for analytics event data."""

    event_timestamp: datetime = Field(
        default_factory=utcnow,
        description="When the event happened",
        sa_type=UTCDateTime,
    )
    source: Optional[str] = Field(
        default=None,
        description="Surface that produced the event (shortlink, apps_script, ...)",
        max_length=64,
    )
    event_type: str = Field(
        description="Event type such as open, click or read",
        max_length=64,
    )
    event_detail: Optional[str] = Field(default=None, max_length=1024)
    newsletter_id: Optional[str] = Field(default=None, max_length=IDENTIFIER_MAX_LENGTH)
    recipient_id: Optional[str] = Field(default=None, max_length=IDENTIFIER_MAX_LENGTH)
    url: Optional[str] = Field(default=None)
    duration_sec: Optional[float] = Field(default=None)
    user_agent: Optional[str] = Field(
        default=None,
        description="User agent string of the caller",
        max_length=USER_AGENT_MAX_LENGTH,
    )

    @field_validator("event_timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class AnalyticsEvent(AnalyticsEventBase, table=True):
    """A row in the analytics events table."""

    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)

    __table_args__ = (
        Index("ix_events_newsletter_timestamp", "newsletter_id", "event_timestamp"),
    )


class AnalyticsEventCreate(AnalyticsEventBase):
    """Schema for writing a new analytics event."""
    pass


class RecipientMappingBase(SQLModel):
    """Identity mapping between a recipient hash and an email address."""

    recipient_hash: str = Field(max_length=IDENTIFIER_MAX_LENGTH)
    email: str = Field(max_length=320)
    email_hash: str = Field(max_length=IDENTIFIER_MAX_LENGTH)
    newsletter_id: str = Field(max_length=IDENTIFIER_MAX_LENGTH)


class RecipientMapping(RecipientMappingBase, table=True):
    """A row in the recipient mappings table."""

    __tablename__ = "recipient_mappings"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    __table_args__ = (
        Index("ix_recipient_mappings_recipient_hash", "recipient_hash"),
    )


class RecipientMappingCreate(RecipientMappingBase):
    """Schema for writing a new recipient mapping."""
    pass
