from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DragDelta(BaseModel):
    """Pointer movement in pixels between drag start and drag end."""

    model_config = ConfigDict(allow_inf_nan=False)

    x: float = 0.0
    y: float = 0.0


class GridGeometry(BaseModel):
    cell_width: float = Field(gt=0)
    cell_height: float = Field(gt=0)
    header_width: float = Field(default=0.0, ge=0)
    header_height: float = Field(default=0.0, ge=0)
    day_count: int = Field(default=7, ge=1, le=7)
    period_count: int = Field(ge=1)


class RelocateRequest(BaseModel):
    delta: DragDelta
    geometry: GridGeometry | None = None


class Placement(BaseModel):
    day: str
    periods: tuple[int, ...]
