from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from slotboard.schemas.timetable import CourseDescriptor, validate_day_label


class SearchOptions(BaseModel):
    """Catalog filter criteria. An empty field imposes no constraint."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    query: str = ""
    grades: frozenset[int] = frozenset()
    days: frozenset[str] = frozenset()
    periods: frozenset[int] = Field(default=frozenset(), alias="times")
    majors: frozenset[str] = frozenset()
    credits: int | None = Field(default=None, ge=0)

    @field_validator("query", mode="before")
    @classmethod
    def coerce_query(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator("credits", mode="before")
    @classmethod
    def blank_credits(cls, value: object) -> object:
        # The credit selector sends "" for "all".
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: frozenset[str]) -> frozenset[str]:
        return frozenset(validate_day_label(day) for day in value)


class SearchOptionsPatch(BaseModel):
    """A single-field change, as sent by one filter control."""

    field: str
    value: Any = None

    @field_validator("field")
    @classmethod
    def validate_field(cls, value: str) -> str:
        aliases = {"times": "periods"}
        name = aliases.get(value, value)
        if name not in SearchOptions.model_fields:
            raise ValueError(f"Unknown search option: {value}")
        return name


class SearchResultPage(BaseModel):
    token: int
    total: int
    shown: int
    has_more: bool
    items: list[CourseDescriptor]


class TimeSlot(BaseModel):
    id: int
    label: str


class MajorOption(BaseModel):
    value: str
    label: str


class VisibleRange(BaseModel):
    start: int
    end: int
    offset: float
    total_height: float


class ScrollPosition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scroll_top: float = Field(alias="scrollTop", ge=0)
    client_height: float = Field(alias="clientHeight", ge=0)
    scroll_height: float = Field(alias="scrollHeight", ge=0)
    threshold: float = Field(default=0.0, ge=0)
