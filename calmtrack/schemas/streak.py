"""
Streak schemas.

StreakState is an immutable value: the streak engine returns a new instance
for every transition. Attributes are snake_case; JSON uses the dashboard's
camelCase names (currentStreak, lastCheckDate, ...).
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class StreakState(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    current_streak: int = Field(default=0, ge=0)
    last_check_date: str = Field(
        default="",
        description='ISO day ("YYYY-MM-DD") of the last folded check, "" if none.',
    )
    best_streak: int = Field(default=0, ge=0)
    total_calm_days: int = Field(default=0, ge=0)
    weekly_calendar: dict[str, bool] = Field(default_factory=dict)

    @model_validator(mode="after")
    def best_covers_current(self) -> "StreakState":
        if self.best_streak < self.current_streak:
            raise ValueError("best_streak must be >= current_streak")
        return self

    @classmethod
    def initial(cls) -> "StreakState":
        """The state used when nothing has been saved yet."""
        return cls()


class CalendarDayOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    day: str
    day_name: str
    day_number: int
    was_checked: bool
    was_calm: bool
    is_today: bool


class WeekResponse(BaseModel):
    today: str
    days: list[CalendarDayOut]
