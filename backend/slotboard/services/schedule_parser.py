"""Parsing of raw catalog schedule strings.

A schedule string is a sequence of chunks joined by a separator token, for
example ``"월1~2(303)<p>화3(202)"``. Each chunk names one day character, a
single period or an inclusive ``start~end`` range, and an optional room in
parentheses.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterator

from slotboard.schemas.timetable import DAY_INDEX, TimeBlock

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = "<p>"

# Highest period a chunk may name; matches the default mask width per day.
MAX_PERIOD = 32

CHUNK_PATTERN = re.compile(
    r"^(?P<day>[^\W\d_])\s*(?P<start>\d+)(?:\s*~\s*(?P<end>\d+))?\s*(?:\((?P<room>.*)\))?"
)


def split_chunks(raw: str, separator: str = DEFAULT_SEPARATOR) -> list[str]:
    if not raw:
        return []
    return [chunk.strip() for chunk in raw.split(separator) if chunk.strip()]


def period_range(start: int, end: int | None = None) -> tuple[int, ...]:
    """Expand ``start~end`` into the inclusive run of periods."""
    if end is None:
        return (start,)
    return tuple(range(start, end + 1))


def _period(digits: str | None, max_period: int) -> int | None:
    """Integer value of ``digits``, or -1 when it has more digits than ``max_period``."""
    if digits is None:
        return None
    digits = digits.lstrip("0") or "0"
    if len(digits) > len(str(max_period)):
        return -1
    return int(digits)


def parse_chunk(chunk: str, max_period: int = MAX_PERIOD) -> TimeBlock | None:
    match = CHUNK_PATTERN.match(chunk)
    if match is None:
        return None

    day = match.group("day")
    if day not in DAY_INDEX:
        return None

    start = _period(match.group("start"), max_period)
    end = _period(match.group("end"), max_period)
    if not 1 <= start <= max_period:
        return None
    if end is not None and not start <= end <= max_period:
        return None

    room = match.group("room")
    room = room.strip() if room is not None else None
    return TimeBlock(day=day, periods=period_range(start, end), room=room or None)


def iter_blocks(
    raw: str,
    separator: str = DEFAULT_SEPARATOR,
    max_period: int = MAX_PERIOD,
) -> Iterator[TimeBlock]:
    for chunk in split_chunks(raw, separator):
        block = parse_chunk(chunk, max_period)
        if block is None:
            logger.debug("Dropping unparsable schedule chunk %r", chunk)
            continue
        yield block


def parse_schedule(
    raw: str,
    separator: str = DEFAULT_SEPARATOR,
    max_period: int = MAX_PERIOD,
) -> list[TimeBlock]:
    """Parse ``raw`` into time blocks in chunk order.

    Malformed chunks (no day/period prefix, unknown day, inverted range, a
    period above ``max_period``) are dropped so that a partially broken
    descriptor still yields its valid blocks.
    """
    return list(iter_blocks(raw, separator, max_period))
