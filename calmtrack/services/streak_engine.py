"""
Streak Engine — folds one day's classification into the streak state.

Rules
-----
  1. SAME DAY
     Trigger : today == state.last_check_date
     Result  : state returned unchanged (first classification of the day wins)

  2. CALM
     Continuation : last_check_date == yesterday  → current_streak + 1
     Restart      : anything else (gap, first ever) → 1
     Also         : best_streak = max(new, best), total_calm_days + 1,
                    weekly_calendar[today] = True

  3. NOT CALM
     Result  : current_streak = 0, best/total unchanged,
               weekly_calendar[today] = False

`advance` is the only code path that changes the streak counters. It is
pure: no I/O, the input state is never mutated.
"""
from __future__ import annotations

import enum
from datetime import date, datetime, timedelta
from typing import Optional, Union

from calmtrack.schemas.streak import StreakState

DayLike = Union[date, str]


class Classification(str, enum.Enum):
    calm = "calm"
    not_calm = "not_calm"

    @classmethod
    def from_level(cls, level: Optional[str]) -> "Classification":
        """Only an explicit "calm" counts as calm; anything else breaks the streak."""
        if level is not None and level.strip().lower() == "calm":
            return cls.calm
        return cls.not_calm


# ---------------------------------------------------------------------------
# Calendar-day helpers
# ---------------------------------------------------------------------------

def _to_date(value: DayLike) -> date:
    # datetime is a date subclass; keep only its calendar day
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def as_day(value: DayLike) -> str:
    """Normalise a date, datetime or ISO string to "YYYY-MM-DD". Raises ValueError if malformed."""
    return _to_date(value).isoformat()


def previous_day(value: DayLike) -> str:
    return (_to_date(value) - timedelta(days=1)).isoformat()


# ---------------------------------------------------------------------------
# Public — transition
# ---------------------------------------------------------------------------

def advance(
    state: StreakState,
    classification: Classification,
    today: DayLike,
) -> StreakState:
    today_str = as_day(today)
    if today_str == state.last_check_date:
        return state

    calendar = dict(state.weekly_calendar)

    if classification == Classification.calm:
        if state.last_check_date == previous_day(today_str):
            new_streak = state.current_streak + 1
        else:
            new_streak = 1
        calendar[today_str] = True
        return StreakState(
            current_streak=new_streak,
            last_check_date=today_str,
            best_streak=max(new_streak, state.best_streak),
            total_calm_days=state.total_calm_days + 1,
            weekly_calendar=calendar,
        )

    calendar[today_str] = False
    return StreakState(
        current_streak=0,
        last_check_date=today_str,
        best_streak=state.best_streak,
        total_calm_days=state.total_calm_days,
        weekly_calendar=calendar,
    )
