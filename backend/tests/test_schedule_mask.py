import itertools

import pytest

from slotboard.schemas.timetable import TimeBlock
from slotboard.services.schedule_mask import (
    BITS_PER_DAY,
    block_mask,
    decode_mask,
    masks_overlap,
    schedule_mask,
    schedules_overlap,
)
from slotboard.services.schedule_parser import parse_schedule


def test_monday_first_period_is_bit_zero():
    assert schedule_mask("월1") == 1


def test_each_day_is_offset_by_fixed_width():
    assert schedule_mask("화1") == 1 << BITS_PER_DAY
    assert schedule_mask("일1") == 1 << (6 * BITS_PER_DAY)


def test_range_sets_every_period():
    assert schedule_mask("월1~3") == 0b111


def test_full_week_exceeds_64_bits():
    mask = schedule_mask("일24")

    assert mask.bit_length() > 64
    assert decode_mask(mask) == [(6, 24)]


def test_unknown_day_contributes_nothing():
    assert schedule_mask("X3<p>월1") == schedule_mask("월1")


def test_empty_schedule_has_no_bits():
    assert schedule_mask("") == 0


def test_period_past_day_width_is_rejected():
    with pytest.raises(ValueError):
        block_mask(TimeBlock(day="월", periods=(17,)), bits_per_day=16)


def test_late_periods_do_not_bleed_into_next_day():
    assert not schedules_overlap("월17~24", "화1~8")


def test_overlap_cases():
    assert schedules_overlap("월1~2(303)<p>화3(202)", "화3~4")
    assert not schedules_overlap("월1~2(303)<p>화3(202)", "월3<p>화4")
    assert masks_overlap(schedule_mask("수5"), schedule_mask("수1~9"))


SCHEDULES = ["월1~2", "월2~3", "화3", "화4~6(101)", "수1", "월5<p>목2", "목1~2", "일24"]


@pytest.mark.parametrize("first,second", list(itertools.combinations(SCHEDULES, 2)))
def test_mask_overlap_matches_block_comparison(first, second):
    expected = any(
        a.day == b.day and set(a.periods) & set(b.periods)
        for a in parse_schedule(first)
        for b in parse_schedule(second)
    )

    assert schedules_overlap(first, second) == expected


def test_period_past_day_width_is_dropped_when_parsing():
    assert schedule_mask("월17<p>화1", bits_per_day=16) == 1 << 16
