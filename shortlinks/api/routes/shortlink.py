"""Shortlink creation endpoint."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from loguru import logger

from shortlinks.api import schemas
from shortlinks.api.dependencies import get_shortlink_service
from shortlinks.core.timeutils import isoformat_utc
from shortlinks.services.exceptions import (
    StorageUnavailableError,
    TokenGenerationError,
    ValidationError,
)
from shortlinks.services.shortlinks import ShortlinkService

router = APIRouter(tags=["shortlink"])


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=schemas.ErrorResponse(error=message).model_dump(),
    )


@router.post(
    "/shortlink",
    response_model=schemas.ShortlinkCreateResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Missing or invalid url"},
        500: {"model": schemas.ErrorResponse, "description": "No storage tier accepted the link"},
    },
)
async def create_shortlink(
    payload: schemas.ShortlinkCreateRequest,
    shortlink_service: ShortlinkService = Depends(get_shortlink_service),
):
    try:
        created = await shortlink_service.create(
            url=payload.url,
            newsletter_id=payload.nid,
            recipient_id=payload.rid,
            ttl_seconds=payload.ttl_seconds,
        )
    except ValidationError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except (StorageUnavailableError, TokenGenerationError) as e:
        logger.error(f"Shortlink creation failed: {e}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create shortlink")

    return schemas.ShortlinkCreateResponse(
        token=created.token,
        path=created.path,
        expires_at=isoformat_utc(created.expires_at),
    )
