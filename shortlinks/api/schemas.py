"""API request and response schemas.

This module contains Pydantic models for API request validation
and response serialization. Field aliases keep the camelCase wire names
used by the newsletter front-end.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Accepts both alias and field names and ignores unknown keys."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ShortlinkCreateRequest(WireModel):
    """Request schema for creating a shortlink."""
    url: Optional[str] = None
    nid: Optional[str] = None
    rid: Optional[str] = None
    ttl_seconds: Optional[int] = Field(None, alias="ttlSeconds")


class ShortlinkCreateResponse(WireModel):
    """Response schema for a created shortlink."""
    ok: bool = True
    token: str
    path: str
    expires_at: Optional[str] = Field(None, alias="expiresAt")


class ErrorResponse(BaseModel):
    """Error body used by the shortlink routes."""
    ok: bool = False
    error: str


class TrackEventRequest(WireModel):
    """Request schema for a raw analytics event."""
    event_type: Optional[str] = Field(None, alias="eventType")
    event_detail: Optional[str] = Field(None, alias="eventDetail")
    newsletter_id: Optional[str] = Field(None, alias="newsletterId")
    recipient_hash: Optional[str] = Field(None, alias="recipientHash")
    url: Optional[str] = None
    duration_sec: Optional[float] = Field(None, alias="durationSec")
    source: Optional[str] = None


class RecipientMappingRequest(WireModel):
    """Request schema for a signed recipient identity mapping."""
    recipient_hash: Optional[str] = Field(None, alias="recipientHash")
    email: Optional[str] = None
    email_hash: Optional[str] = Field(None, alias="emailHash")
    newsletter_id: Optional[str] = Field(None, alias="newsletterId")
