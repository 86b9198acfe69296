"""Shortlink resolution endpoint."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from starlette.responses import RedirectResponse

from shortlinks.api.dependencies import get_shortlink_service
from shortlinks.services.exceptions import (
    ShortlinkExpiredError,
    ShortlinkGoneError,
    ShortlinkNotFoundError,
)
from shortlinks.services.shortlinks import ShortlinkService

# Create router with tags
router = APIRouter(tags=["redirect"])


@router.get(
    "/s/{token}",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
)
async def resolve_shortlink(
    request: Request,
    token: str,
    shortlink_service: ShortlinkService = Depends(get_shortlink_service),
):
    """Redirect to the target URL; the click event is relayed in the background."""
    try:
        entry = await shortlink_service.resolve(
            token, user_agent=request.headers.get("user-agent")
        )
    except ShortlinkNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except (ShortlinkExpiredError, ShortlinkGoneError) as e:
        raise HTTPException(status_code=410, detail=str(e))

    return RedirectResponse(url=entry.url, status_code=status.HTTP_302_FOUND)
