"""
Weekly calendar strip: the last seven days ending today, oldest first,
read from StreakState.weekly_calendar.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta

from calmtrack.schemas.streak import StreakState

# Monday-first, matching date.weekday()
_DAY_NAMES = ("M", "T", "W", "T", "F", "S", "S")


@dataclass
class CalendarDay:
    day: str
    day_name: str
    day_number: int
    was_checked: bool
    was_calm: bool
    is_today: bool


def last_seven_days(state: StreakState, today: date, days: int = 7) -> list[CalendarDay]:
    week = []
    for offset in range(days - 1, -1, -1):
        d = today - timedelta(days=offset)
        key = d.isoformat()
        week.append(CalendarDay(
            day=key,
            day_name=_DAY_NAMES[d.weekday()],
            day_number=d.day,
            was_checked=key in state.weekly_calendar,
            was_calm=state.weekly_calendar.get(key) is True,
            is_today=d == today,
        ))
    return week
