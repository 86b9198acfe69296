"""
Data models for the shortlink service.

This module imports and exports all SQLModel models used in the application.
"""

# First import SQLModel itself to ensure metadata is initialized
from sqlmodel import SQLModel

from shortlinks.models.shortlink import ShortlinkBase, ShortlinkEntry, ShortlinkRecord
from shortlinks.models.event import (
    AnalyticsEvent,
    AnalyticsEventBase,
    AnalyticsEventCreate,
    RecipientMapping,
    RecipientMappingBase,
    RecipientMappingCreate,
)

__all__ = [
    "SQLModel",

    # Shortlink models
    "ShortlinkBase",
    "ShortlinkEntry",
    "ShortlinkRecord",

    # Analytics sink models
    "AnalyticsEvent",
    "AnalyticsEventBase",
    "AnalyticsEventCreate",
    "RecipientMapping",
    "RecipientMappingBase",
    "RecipientMappingCreate",
]
