from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

DAY_LABELS: tuple[str, ...] = ("월", "화", "수", "목", "금", "토", "일")

DAY_INDEX: dict[str, int] = {day: index for index, day in enumerate(DAY_LABELS)}


def validate_period_run(periods: tuple[int, ...]) -> tuple[int, ...]:
    if not periods:
        raise ValueError("periods must not be empty")
    if periods[0] < 1:
        raise ValueError("periods must be positive")
    for previous, current in zip(periods, periods[1:]):
        if current != previous + 1:
            raise ValueError("periods must be a contiguous ascending run")
    return periods


def validate_day_label(value: str) -> str:
    day = value.strip()
    if day not in DAY_INDEX:
        raise ValueError(f"Invalid day value: {value!r}")
    return day


class TimeBlock(BaseModel):
    model_config = ConfigDict(frozen=True)

    day: str
    periods: tuple[int, ...]
    room: str | None = None

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return validate_day_label(value)

    @field_validator("periods")
    @classmethod
    def validate_periods(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return validate_period_run(value)

    @property
    def day_index(self) -> int:
        return DAY_INDEX[self.day]


class CourseDescriptor(BaseModel):
    """A catalog entry as served by the course source."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    credits: str = ""
    major: str = ""
    schedule: str = ""
    grade: int = 0

    @field_validator("credits", "major", "schedule", mode="before")
    @classmethod
    def coerce_text(cls, value: object) -> str:
        if value is None:
            return ""
        return str(value)


class Session(BaseModel):
    """One placed block of a course on a table."""

    model_config = ConfigDict(frozen=True)

    course: CourseDescriptor
    day: str
    periods: tuple[int, ...]
    room: str | None = None

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return validate_day_label(value)

    @field_validator("periods")
    @classmethod
    def validate_periods(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return validate_period_run(value)

    @classmethod
    def from_block(cls, block: TimeBlock, course: CourseDescriptor) -> "Session":
        return cls(course=course, day=block.day, periods=block.periods, room=block.room)

    def covers(self, day: str, period: int) -> bool:
        return self.day == day and period in self.periods


class TableOut(BaseModel):
    id: str
    position: int
    sessions: list[Session]


class TimetableSnapshot(BaseModel):
    version: int
    tables: list[TableOut]


class SearchContext(BaseModel):
    """Which table, and optionally which grid cell, a catalog search was opened from."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    table_id: str = Field(alias="tableId", min_length=1)
    day: str | None = None
    period: int | None = Field(default=None, ge=1)

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return validate_day_label(value)


class SessionUpdate(BaseModel):
    day: str
    periods: tuple[int, ...]

    @field_validator("day")
    @classmethod
    def validate_day(cls, value: str) -> str:
        return validate_day_label(value)

    @field_validator("periods")
    @classmethod
    def validate_periods(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        return validate_period_run(value)


class DuplicateTableOut(BaseModel):
    source_id: str
    table_id: str


class ConflictPair(BaseModel):
    first_index: int
    second_index: int
    first_course_id: str
    second_course_id: str
    day: str
    periods: list[int]


class ConflictReport(BaseModel):
    table_id: str
    conflicts: list[ConflictPair]



class AddCourseRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    course: CourseDescriptor | None = None
    course_id: str | None = Field(default=None, alias="courseId", min_length=1)
