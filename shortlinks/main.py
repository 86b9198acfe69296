"""Main application module.

This module initializes the FastAPI application, includes routes,
and configures middleware and exception handlers.
"""

import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from shortlinks.api import api_router
from shortlinks.core.config import Settings, settings as default_settings
from shortlinks.core.logging import setup_logging
from shortlinks.middleware.logging import add_logging_middleware
from shortlinks.runtime import ShortlinkRuntime


def create_app(
    runtime: Optional[ShortlinkRuntime] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        runtime: Pre-built runtime; one is created from settings if omitted
        settings: Settings used when no runtime is given
    """
    if runtime is None:
        runtime = ShortlinkRuntime(settings or default_settings)
    settings = runtime.settings

    setup_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        description=settings.APP_DESCRIPTION,
        version=settings.APP_VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    app.state.runtime = runtime

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.REQUEST_LOGGING_ENABLED:
        add_logging_middleware(app)

    # Include API router
    app.include_router(api_router)

    # Add exception handlers
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies are the caller's fault, reported as 400."""
        logger.warning(f"Request validation error on {request.url.path}")
        return JSONResponse(
            status_code=400,
            content={"ok": False, "error": "Invalid request body", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler to catch and log all unhandled exceptions."""
        error_id = f"error-{time.time()}"

        # Message goes through bind() so braces in the path are never formatted
        logger.opt(exception=exc).bind(
            error_id=error_id,
            url=str(request.url),
            method=request.method,
            client_host=request.client.host if request.client else None,
        ).error(f"Unhandled exception in {request.method} {request.url.path}")

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error occurred",
                "error_id": error_id,
                "message": str(exc) if settings.DEBUG else "Internal server error",
            },
        )

    # Add startup and shutdown event handlers
    @app.on_event("startup")
    async def startup_event():
        """Build the runtime: clients, tiers, services and scheduler."""
        logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
        logger.info(f"Environment: {settings.ENVIRONMENT.value}")
        await runtime.startup()

    @app.on_event("shutdown")
    async def shutdown_event():
        """Stop the scheduler, drain the relay and close connections."""
        logger.info(f"Shutting down {settings.APP_NAME}")
        await runtime.shutdown()

    return app


app = create_app()
