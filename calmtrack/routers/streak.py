"""
Streak router.

GET /streak        — current streak state
GET /streak/week   — last seven days for the calendar strip

Read-only: counters only change through POST /checkins.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from calmtrack.db.base import get_store
from calmtrack.db.store import Store
from calmtrack.schemas.streak import CalendarDayOut, StreakState, WeekResponse
from calmtrack.services.calendar import last_seven_days

router = APIRouter(prefix="/streak", tags=["streak"])


@router.get(
    "",
    response_model=StreakState,
    summary="Current streak state",
)
def get_streak(store: Store = Depends(get_store)):
    """Returns the zeroed initial state when nothing has been recorded yet."""
    return store.load_streak_state() or StreakState.initial()


@router.get(
    "/week",
    response_model=WeekResponse,
    summary="Seven-day calm calendar",
)
def get_week(
    today: Optional[date] = Query(
        default=None,
        description="ISO date the strip ends on. Defaults to today (local time).",
        examples=["2024-01-07"],
    ),
    store: Store = Depends(get_store),
):
    target = today or date.today()
    state = store.load_streak_state() or StreakState.initial()
    return WeekResponse(
        today=target.isoformat(),
        days=[
            CalendarDayOut.model_validate(d, from_attributes=True)
            for d in last_seven_days(state, target)
        ],
    )
