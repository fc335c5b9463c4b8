"""
Check-in service: turns one analyser result into a persisted reading and
the next streak state.

Public API
----------
normalize_level(level)                        → "calm" | "moderate" | "stressed" | "unknown"
stress_code(level)                            → 1 | 2 | 3
record_checkin(store, level, message, now)    → CheckinResult

Unknown levels keep the dashboard's historical policy: severity 3, not calm.
They are recorded with label "stressed" and reported back with the display
level "unknown".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from calmtrack.db.store import Store
from calmtrack.schemas.reading import STRESS_CODES, Reading, ReadingInput
from calmtrack.schemas.streak import StreakState
from calmtrack.services.streak_engine import Classification, advance

logger = logging.getLogger(__name__)

UNKNOWN_LEVEL = "unknown"
_FALLBACK_CODE = 3


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass
class CheckinResult:
    reading: Reading
    streak: StreakState
    display_level: str          # normalised level, "unknown" when unrecognised
    show_breathing_cta: bool    # only for "stressed"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _now_local() -> datetime:
    return datetime.now().astimezone()


def _fmt_time(dt: datetime) -> str:
    return dt.strftime("%I:%M %p")


def normalize_level(level: Optional[str]) -> str:
    if level is None:
        return UNKNOWN_LEVEL
    normalized = str(level).strip().lower()
    return normalized if normalized in STRESS_CODES else UNKNOWN_LEVEL


def stress_code(level: Optional[str]) -> int:
    return STRESS_CODES.get(normalize_level(level), _FALLBACK_CODE)


def _label_for(code: int) -> str:
    return next(label for label, value in STRESS_CODES.items() if value == code)


# ---------------------------------------------------------------------------
# Public — main entry point
# ---------------------------------------------------------------------------

def record_checkin(
    store: Store,
    level: Optional[str],
    message: str = "",
    now: Optional[datetime] = None,
) -> CheckinResult:
    """
    Build the reading, fold today's classification into the streak and
    persist both in one exclusive transaction. `now` defaults to the local time.
    """
    moment = now or _now_local()
    display_level = normalize_level(level)
    if display_level == UNKNOWN_LEVEL:
        logger.warning("Unrecognised stress level %r, recording as stressed", level)

    code = stress_code(level)
    reading = ReadingInput(
        time=_fmt_time(moment),
        timestamp=int(moment.timestamp() * 1000),
        stress=code,
        label=_label_for(code),
        message=message or "",
    )

    classification = Classification.from_level(display_level)

    def fold(previous: Optional[StreakState]) -> StreakState:
        return advance(previous or StreakState.initial(), classification, moment.date())

    reading_id, streak = store.apply_checkin(reading, fold)
    logger.info(
        "Recorded check-in %d (%s), streak %d/%d",
        reading_id, display_level, streak.current_streak, streak.best_streak,
    )
    return CheckinResult(
        reading=Reading(id=reading_id, **reading.model_dump()),
        streak=streak,
        display_level=display_level,
        show_breathing_cta=display_level == "stressed",
    )
