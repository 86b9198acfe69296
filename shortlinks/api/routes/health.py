"""Health check endpoints for monitoring application status."""

import time

from fastapi import APIRouter, Depends, status

from shortlinks.api.dependencies import get_runtime
from shortlinks.runtime import ShortlinkRuntime

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Get system health status",
    response_description="Health status of every storage tier and the scheduler",
)
async def health_check(runtime: ShortlinkRuntime = Depends(get_runtime)):
    """Check health of all system components."""
    settings = runtime.settings
    report = await runtime.health()

    components = {}
    for tier_name, reachable in report["tiers"].items():
        components[tier_name] = {"status": "healthy" if reachable else "unhealthy"}

    # The memory tier always answers, so an unreachable tier only degrades service
    overall = "healthy" if all(report["tiers"].values()) else "degraded"

    return {
        "status": overall,
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "policy": settings.SHORTLINK_POLICY,
        "timestamp": time.time(),
        "components": components,
        "scheduler": report["scheduler"],
        "relay": {
            "pending": report["relay_pending"],
            "failures": report["relay_failures"],
        },
    }


@router.get(
    "/health/live",
    status_code=status.HTTP_200_OK,
    summary="Liveness probe",
    response_description="Application liveness status",
)
async def liveness_probe():
    """Simple check that application is running."""
    return {"alive": True}
