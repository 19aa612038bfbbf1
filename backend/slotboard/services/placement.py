from __future__ import annotations

import math

from slotboard.core.config import Settings
from slotboard.schemas.placement import DragDelta, GridGeometry, Placement
from slotboard.schemas.timetable import DAY_INDEX, DAY_LABELS, Session


def default_geometry(settings: Settings) -> GridGeometry:
    return GridGeometry(
        cell_width=settings.cell_width,
        cell_height=settings.cell_height,
        header_width=settings.header_width,
        header_height=settings.header_height,
        day_count=len(DAY_LABELS),
        period_count=settings.period_count,
    )


def snap(distance: float, cell_size: float) -> int:
    """Nearest whole number of cells, halves rounding up."""
    return math.floor(distance / cell_size + 0.5)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(value, upper))


def snapped_target(origin: float, distance: float, cell_size: float, lower: float, upper: float) -> float:
    """Snapped position clamped to ``[lower, upper]``.

    NaN leaves the block where it is; an infinite move lands on the matching edge.
    """
    cells = distance / cell_size
    if math.isnan(cells):
        return origin
    if math.isinf(cells):
        return upper if cells > 0 else lower
    return clamp(origin + snap(distance, cell_size) * cell_size, lower, upper)


def relocate(session: Session, delta: DragDelta, geometry: GridGeometry) -> Placement:
    """Snap a drag to whole cells and keep the block inside the grid.

    The block keeps its length; only its day and first period move. No
    overlap check is made against other sessions.
    """
    day_count = min(geometry.day_count, len(DAY_LABELS))
    length = len(session.periods)
    day_index = DAY_INDEX[session.day]
    first_period = session.periods[0]

    left = geometry.header_width + day_index * geometry.cell_width
    top = geometry.header_height + (first_period - 1) * geometry.cell_height

    min_left = geometry.header_width
    max_left = geometry.header_width + (day_count - 1) * geometry.cell_width
    min_top = geometry.header_height
    max_top = max(min_top, geometry.header_height + (geometry.period_count - length) * geometry.cell_height)

    target_left = snapped_target(left, delta.x, geometry.cell_width, min_left, max_left)
    target_top = snapped_target(top, delta.y, geometry.cell_height, min_top, max_top)

    day_delta = round((target_left - left) / geometry.cell_width)
    period_delta = round((target_top - top) / geometry.cell_height)

    new_day_index = int(clamp(day_index + day_delta, 0, day_count - 1))
    period_delta = max(period_delta, 1 - first_period)
    return Placement(
        day=DAY_LABELS[new_day_index],
        periods=tuple(period + period_delta for period in session.periods),
    )
