from fastapi import APIRouter

from slotboard.core.config import get_settings
from slotboard.schemas.schedule import MaskOut, MaskSlot, OverlapOut, OverlapRequest, ScheduleText
from slotboard.schemas.timetable import DAY_LABELS, TimeBlock
from slotboard.services.schedule_mask import decode_mask, schedule_mask
from slotboard.services.schedule_parser import parse_schedule

router = APIRouter()

settings = get_settings()


def _slots(mask: int) -> list[MaskSlot]:
    return [
        MaskSlot(day=DAY_LABELS[day_index], period=period)
        for day_index, period in decode_mask(mask, settings.mask_bits_per_day)
    ]


def _mask(schedule: str) -> int:
    return schedule_mask(schedule, settings.schedule_separator, settings.mask_bits_per_day)


@router.post("/parse", response_model=list[TimeBlock])
def parse(payload: ScheduleText) -> list[TimeBlock]:
    return parse_schedule(payload.schedule, settings.schedule_separator, max_period=settings.mask_bits_per_day)


@router.post("/mask", response_model=MaskOut)
def mask(payload: ScheduleText) -> MaskOut:
    value = _mask(payload.schedule)
    return MaskOut(mask=str(value), hex=hex(value), slots=_slots(value))


@router.post("/overlap", response_model=OverlapOut)
def overlap(payload: OverlapRequest) -> OverlapOut:
    shared = _mask(payload.first) & _mask(payload.second)
    return OverlapOut(overlap=shared != 0, shared=_slots(shared))
