"""Service layer for the shortlink application.

This package contains service classes implementing the business logic of the application.
Services orchestrate storage tiers and the analytics sink and provide domain-specific operations.
"""

from shortlinks.services.cleanup import CleanupService
from shortlinks.services.ingest import IngestService
from shortlinks.services.relay import EventRelay
from shortlinks.services.shortlinks import CreatedShortlink, ShortlinkService
from shortlinks.services.signatures import SignatureVerifier
from shortlinks.services.sink import AnalyticsSink, SqlAnalyticsSink
from shortlinks.services.store import StoredEntry, TieredStore

__all__ = [
    "AnalyticsSink",
    "CleanupService",
    "CreatedShortlink",
    "EventRelay",
    "IngestService",
    "ShortlinkService",
    "SignatureVerifier",
    "SqlAnalyticsSink",
    "StoredEntry",
    "TieredStore",
]
