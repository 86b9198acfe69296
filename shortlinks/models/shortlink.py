"""Shortlink data models.

This module defines the ShortlinkEntry value that moves between storage
tiers and the ShortlinkRecord table used by the durable tier.
"""

from datetime import datetime
from typing import Optional

from pydantic import field_validator
from sqlalchemy import Index
from sqlmodel import Field, SQLModel

from shortlinks.core.timeutils import ensure_utc, utcnow
from shortlinks.models.types import UTCDateTime

# Column sizes shared with the analytics tables
IDENTIFIER_MAX_LENGTH = 255


class ShortlinkBase(SQLModel):
    """Fields shared by every representation of a shortlink."""

    token: str = Field(
        description="Opaque public identifier used in /s/{token}",
        max_length=64,
    )
    url: str = Field(
        description="Redirect target",
    )
    newsletter_id: Optional[str] = Field(
        default=None,
        description="Campaign identifier carried through to click events",
        max_length=IDENTIFIER_MAX_LENGTH,
    )
    recipient_id: Optional[str] = Field(
        default=None,
        description="Hashed recipient identifier carried through to click events",
        max_length=IDENTIFIER_MAX_LENGTH,
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="Timestamp when this shortlink was created",
        sa_type=UTCDateTime,
    )
    expires_at: Optional[datetime] = Field(
        default=None,
        description="Absolute expiry (null means no expiration)",
        sa_type=UTCDateTime,
    )
    consumed: bool = Field(
        default=False,
        description="Set once the token is resolved under the single-use policy",
    )

    @field_validator("created_at", "expires_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the shortlink has expired at ``now``.

        The expiry instant itself counts as expired.
        """
        if self.expires_at is None:
            return False
        return ensure_utc(now or utcnow()) >= ensure_utc(self.expires_at)


class ShortlinkEntry(ShortlinkBase):
    """A shortlink as stored in and returned from any tier."""
    pass


class ShortlinkRecord(ShortlinkBase, table=True):
    """
    Append-only shortlink row used by the durable tier.

    Rows are never updated except for the consumed flag. A token may appear
    more than once; readers take the most recent row.
    """

    __tablename__ = "shortlinks"

    id: Optional[int] = Field(default=None, primary_key=True)

    __table_args__ = (
        Index("ix_shortlinks_token_created_at", "token", "created_at"),
    )

    @classmethod
    def from_entry(cls, entry: ShortlinkEntry) -> "ShortlinkRecord":
        return cls(**entry.model_dump())

    def to_entry(self) -> ShortlinkEntry:
        return ShortlinkEntry(**self.model_dump(exclude={"id"}))
