"""Routes package initialization.

This module exports the route collection for the application.
"""

from fastapi import APIRouter

from shortlinks.api.routes import health, ingest, redirect, shortlink

# Create root router
api_router = APIRouter()

api_router.include_router(shortlink.router)
api_router.include_router(redirect.router)
api_router.include_router(ingest.router)
api_router.include_router(health.router)

__all__ = ["api_router"]
