"""
Check-in schemas.

POST /checkins → CheckinRequest → CheckinResponse
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from calmtrack.schemas.reading import Reading
from calmtrack.schemas.streak import StreakState


class CheckinRequest(BaseModel):
    """The analyser's verdict, forwarded by the dashboard."""
    level: Optional[str] = Field(
        default=None,
        description='"calm" | "moderate" | "stressed", case-insensitive. Anything else is "unknown".',
        examples=["calm"],
    )
    message: str = Field(default="", max_length=10_000)


class CheckinResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    reading: Reading
    streak: StreakState
    display_level: str
    show_breathing_cta: bool
