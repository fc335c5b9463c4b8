"""
Reading schemas.

ReadingInput  → what callers hand to the store (no id yet)
Reading       → a persisted row
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

StressCode = Literal[1, 2, 3]
StressLabel = Literal["calm", "moderate", "stressed"]

STRESS_CODES: dict[str, int] = {
    "calm": 1,
    "moderate": 2,
    "stressed": 3,
}


class ReadingInput(BaseModel):
    """A reading that has not been persisted yet."""
    model_config = ConfigDict(extra="ignore")

    time: str = Field(
        max_length=32,
        description="Local time of day, display only.",
        examples=["09:41 AM"],
    )
    timestamp: int = Field(
        ge=0,
        description="Epoch milliseconds. The ordering key.",
        examples=[1704096060000],
    )
    stress: StressCode = Field(description="1 = calm, 2 = moderate, 3 = stressed.")
    label: StressLabel
    message: str = ""

    @model_validator(mode="after")
    def stress_matches_label(self) -> "ReadingInput":
        if STRESS_CODES[self.label] != self.stress:
            raise ValueError(
                f"stress {self.stress} does not match label {self.label!r}"
            )
        return self


class Reading(ReadingInput):
    model_config = ConfigDict(from_attributes=True)

    id: int


class ReadingCreated(BaseModel):
    id: int


class ReadingListResponse(BaseModel):
    total: int
    items: list[Reading]
