from __future__ import annotations

from collections.abc import Iterable

from slotboard.schemas.timetable import TimeBlock
from slotboard.services.schedule_parser import DEFAULT_SEPARATOR, parse_schedule

# Bits reserved per day; must be at least the grid's period count (24).
BITS_PER_DAY = 32


def block_mask(block: TimeBlock, bits_per_day: int = BITS_PER_DAY) -> int:
    offset = block.day_index * bits_per_day
    mask = 0
    for period in block.periods:
        if period > bits_per_day:
            raise ValueError(f"Period {period} does not fit in {bits_per_day} bits per day")
        mask |= 1 << (offset + period - 1)
    return mask


def blocks_mask(blocks: Iterable[TimeBlock], bits_per_day: int = BITS_PER_DAY) -> int:
    mask = 0
    for block in blocks:
        mask |= block_mask(block, bits_per_day)
    return mask


def schedule_mask(raw: str, separator: str = DEFAULT_SEPARATOR, bits_per_day: int = BITS_PER_DAY) -> int:
    """Encode a raw schedule string as one bit per (day, period) slot.

    Monday period 1 is bit 0; each following day starts ``bits_per_day`` bits
    higher. Python ints are unbounded, so the full week never overflows.
    Chunks naming a period above ``bits_per_day`` are dropped by the parser.
    """
    return blocks_mask(parse_schedule(raw, separator, max_period=bits_per_day), bits_per_day)


def masks_overlap(first: int, second: int) -> bool:
    return (first & second) != 0


def schedules_overlap(first: str, second: str, separator: str = DEFAULT_SEPARATOR) -> bool:
    return masks_overlap(schedule_mask(first, separator), schedule_mask(second, separator))


def decode_mask(mask: int, bits_per_day: int = BITS_PER_DAY) -> list[tuple[int, int]]:
    """List the ``(day_index, period)`` slots set in ``mask``."""
    slots: list[tuple[int, int]] = []
    position = 0
    while mask:
        if mask & 1:
            slots.append(divmod(position, bits_per_day))
        mask >>= 1
        position += 1
    return [(day_index, bit + 1) for day_index, bit in slots]
