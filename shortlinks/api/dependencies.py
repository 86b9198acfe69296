"""API dependencies for FastAPI.

This module provides dependency injection functions for FastAPI endpoints
to access the service instances owned by the application runtime.
"""

from fastapi import Depends, Request

from shortlinks.runtime import ShortlinkRuntime
from shortlinks.services.ingest import IngestService
from shortlinks.services.shortlinks import ShortlinkService


def get_runtime(request: Request) -> ShortlinkRuntime:
    """Get the runtime attached to the application at startup."""
    return request.app.state.runtime


def get_shortlink_service(runtime: ShortlinkRuntime = Depends(get_runtime)) -> ShortlinkService:
    """Get the shortlink service."""
    return runtime.require(runtime.shortlinks, "shortlink service")


def get_ingest_service(runtime: ShortlinkRuntime = Depends(get_runtime)) -> IngestService:
    """Get the ingestion service."""
    return runtime.require(runtime.ingest, "ingest service")
