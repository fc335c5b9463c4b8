"""
StreakRecord — the single row holding the streak state.

`id` is pinned to 1 by a check constraint, so the table can never hold a
second row. weekly_calendar: JSON-encoded {"YYYY-MM-DD": bool} stored as
Text.
"""
from sqlalchemy import CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from calmtrack.db.base import Base

STREAK_ROW_ID = 1


class StreakRecord(Base):
    __tablename__ = "streak_state"
    __table_args__ = (
        CheckConstraint(f"id = {STREAK_ROW_ID}", name="ck_streak_state_singleton"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=STREAK_ROW_ID)
    current_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_check_date: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    best_streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_calm_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    weekly_calendar: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
