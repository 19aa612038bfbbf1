from __future__ import annotations

from pydantic import BaseModel, Field


class ScheduleText(BaseModel):
    schedule: str = Field(max_length=4000)


class MaskSlot(BaseModel):
    day: str
    period: int


class MaskOut(BaseModel):
    # Masks exceed 53 bits, so they travel as strings.
    mask: str
    hex: str
    slots: list[MaskSlot]


class OverlapRequest(BaseModel):
    first: str = Field(max_length=4000)
    second: str = Field(max_length=4000)


class OverlapOut(BaseModel):
    overlap: bool
    shared: list[MaskSlot]
