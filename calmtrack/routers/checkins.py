"""
Check-in router.

POST /checkins   — record an analyser result and advance the streak
"""
from fastapi import APIRouter, Depends

from calmtrack.db.base import get_store
from calmtrack.db.store import Store
from calmtrack.schemas.checkin import CheckinRequest, CheckinResponse
from calmtrack.services.checkin import record_checkin

router = APIRouter(prefix="/checkins", tags=["checkins"])


@router.post(
    "",
    response_model=CheckinResponse,
    status_code=201,
    summary="Record a stress analysis result",
    responses={
        201: {"description": "Reading stored and streak advanced."},
        503: {"description": "Local store unavailable."},
    },
)
def create_checkin(payload: CheckinRequest, store: Store = Depends(get_store)):
    """
    Store one reading built from the analyser's `level` and `message` and
    fold today's classification into the streak. Both writes share one
    transaction.

    Only the first check-in of a day changes the streak; later ones are
    still logged as readings.
    """
    result = record_checkin(store, level=payload.level, message=payload.message)
    return CheckinResponse(
        reading=result.reading,
        streak=result.streak,
        display_level=result.display_level,
        show_breathing_cta=result.show_breathing_cta,
    )
