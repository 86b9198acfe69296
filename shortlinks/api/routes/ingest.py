"""Analytics ingestion endpoints.

``/track`` records raw events and ``/map`` records signed recipient
identity mappings. Both answer 204 with an empty body on success.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from shortlinks.api import schemas
from shortlinks.api.dependencies import get_ingest_service, get_runtime
from shortlinks.runtime import ShortlinkRuntime
from shortlinks.services.exceptions import (
    IngestError,
    SecretNotConfiguredError,
    SignatureInvalidError,
    SignatureMissingError,
    ValidationError,
)
from shortlinks.services.ingest import IngestService

router = APIRouter(tags=["ingest"])


@router.post("/track", status_code=status.HTTP_204_NO_CONTENT)
async def track_event(
    request: Request,
    payload: schemas.TrackEventRequest,
    ingest_service: IngestService = Depends(get_ingest_service),
):
    try:
        await ingest_service.track(
            event_type=payload.event_type,
            newsletter_id=payload.newsletter_id,
            recipient_hash=payload.recipient_hash,
            url=payload.url,
            duration_sec=payload.duration_sec,
            event_detail=payload.event_detail,
            source=payload.source,
            user_agent=request.headers.get("user-agent"),
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except IngestError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/map", status_code=status.HTTP_204_NO_CONTENT)
async def map_recipient(
    request: Request,
    payload: schemas.RecipientMappingRequest,
    runtime: ShortlinkRuntime = Depends(get_runtime),
    ingest_service: IngestService = Depends(get_ingest_service),
):
    signature = request.headers.get(runtime.settings.MAP_SIGNATURE_HEADER)
    try:
        await ingest_service.map_recipient(
            recipient_hash=payload.recipient_hash,
            email=payload.email,
            email_hash=payload.email_hash,
            newsletter_id=payload.newsletter_id,
            signature=signature,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SecretNotConfiguredError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except (SignatureMissingError, SignatureInvalidError) as e:
        raise HTTPException(status_code=401, detail=str(e))
    except IngestError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
