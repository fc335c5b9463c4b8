"""
Readings router.

GET    /readings         — most recent readings, oldest first (trend chart)
GET    /readings/all     — every reading
POST   /readings         — insert one validated reading
DELETE /readings         — clear the whole log (streak untouched)
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status

from calmtrack.core.config import settings
from calmtrack.db.base import get_store
from calmtrack.db.store import Store
from calmtrack.schemas.reading import ReadingCreated, ReadingInput, ReadingListResponse

router = APIRouter(prefix="/readings", tags=["readings"])


@router.get(
    "",
    response_model=ReadingListResponse,
    summary="Most recent readings in ascending timestamp order",
)
def list_recent_readings(
    limit: Optional[int] = Query(
        default=None,
        ge=1,
        le=1000,
        description="How many readings. Defaults to RECENT_READINGS_LIMIT.",
    ),
    store: Store = Depends(get_store),
):
    items = store.get_recent_readings(limit or settings.RECENT_READINGS_LIMIT)
    return ReadingListResponse(total=len(items), items=items)


@router.get(
    "/all",
    response_model=ReadingListResponse,
    summary="Every stored reading (no ordering guarantee)",
)
def list_all_readings(store: Store = Depends(get_store)):
    items = store.get_all_readings()
    return ReadingListResponse(total=len(items), items=items)


@router.post(
    "",
    response_model=ReadingCreated,
    status_code=status.HTTP_201_CREATED,
    summary="Append one reading to the log",
    responses={422: {"description": "Reading failed validation."}},
)
def add_reading(payload: ReadingInput, store: Store = Depends(get_store)):
    """Append a reading without touching the streak. Use POST /checkins for the full flow."""
    return ReadingCreated(id=store.add_reading(payload))


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete every reading",
)
def clear_readings(store: Store = Depends(get_store)):
    store.clear_all_readings()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
