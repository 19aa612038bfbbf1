import pytest

from slotboard.schemas.search import SearchOptions
from slotboard.schemas.timetable import CourseDescriptor
from slotboard.services.catalog import annotate
from slotboard.services.search import ResultWindow, filter_catalog, needs_more, visible_range


def make_entry(**data):
    base = {"id": "X000", "title": "Untitled", "credits": "3학점", "major": "기타", "schedule": "", "grade": 1}
    base.update(data)
    return annotate(CourseDescriptor.model_validate(base))


@pytest.fixture
def entries():
    return [
        make_entry(id="CSE101", title="Data Structures", major="컴퓨터공학과", schedule="월1~2(303)<p>화3(202)", grade=2),
        make_entry(id="CSE205", title="Operating Systems", major="컴퓨터공학과", schedule="수5~7(401)", grade=3),
        make_entry(id="MTH110", title="Linear Algebra", credits="2학점", major="수학과", schedule="목1~3", grade=1),
        make_entry(id="LIB001", title="Writing and Data", credits="1학점", major="교양", schedule="금8(101)", grade=1),
        make_entry(id="LIB002", title="Campus Orientation", credits="1학점", major="교양", schedule="", grade=1),
    ]


def ids(result):
    return [entry.course.id for entry in result]


def test_empty_options_return_full_catalog_in_order(entries):
    assert filter_catalog(entries, SearchOptions()) == entries


def test_query_matches_title_or_id_case_insensitively(entries):
    assert ids(filter_catalog(entries, SearchOptions(query="DATA"))) == ["CSE101", "LIB001"]
    assert ids(filter_catalog(entries, SearchOptions(query="mth"))) == ["MTH110"]


def test_grades_and_majors(entries):
    assert ids(filter_catalog(entries, SearchOptions(grades={1}))) == ["MTH110", "LIB001", "LIB002"]
    assert ids(filter_catalog(entries, SearchOptions(majors={"컴퓨터공학과"}))) == ["CSE101", "CSE205"]


def test_credits_match_label_prefix(entries):
    assert ids(filter_catalog(entries, SearchOptions(credits=2))) == ["MTH110"]
    assert filter_catalog(entries, SearchOptions(credits="")) == entries


def test_days_and_periods_use_parsed_blocks(entries):
    assert ids(filter_catalog(entries, SearchOptions(days={"화"}))) == ["CSE101"]
    assert ids(filter_catalog(entries, SearchOptions(periods={5}))) == ["CSE205"]
    assert ids(filter_catalog(entries, SearchOptions(periods={3}))) == ["CSE101", "MTH110"]


def test_course_without_schedule_fails_day_filter(entries):
    assert "LIB002" not in ids(filter_catalog(entries, SearchOptions(days={"월", "화", "수", "목", "금"})))


def test_filters_are_anded(entries):
    options = SearchOptions(query="data", grades={1}, days={"금"})

    assert ids(filter_catalog(entries, options)) == ["LIB001"]


def test_spec_example_course():
    entry = make_entry(schedule="월1~2(303)<p>화3(202)")

    assert filter_catalog([entry], SearchOptions(days={"화"})) == [entry]
    assert filter_catalog([entry], SearchOptions(periods={5})) == []


@pytest.mark.parametrize(
    "options",
    [
        SearchOptions(),
        SearchOptions(query="s"),
        SearchOptions(grades={1, 3}, periods={1, 5}),
        SearchOptions(majors={"교양"}, credits=1),
    ],
)
def test_filter_is_idempotent(entries, options):
    once = filter_catalog(entries, options)

    assert filter_catalog(once, options) == once


def test_times_alias_is_accepted():
    assert SearchOptions.model_validate({"times": [1, 2]}).periods == frozenset({1, 2})


def test_invalid_day_option_is_rejected():
    with pytest.raises(ValueError):
        SearchOptions(days={"Monday"})


def test_result_window_grows_and_stops_at_end():
    results = list(range(250))
    window = ResultWindow(page_size=100)

    assert len(window.visible(results)) == 100
    assert window.load_more(len(results))
    assert window.load_more(len(results))
    assert len(window.visible(results)) == 250
    assert not window.has_more(len(results))
    assert not window.load_more(len(results))
    assert window.limit == 300

    window.reset()
    assert len(window.visible(results)) == 100


def test_needs_more_detects_proximity_to_end():
    assert needs_more(scroll_top=900, client_height=100, scroll_height=1000)
    assert not needs_more(scroll_top=100, client_height=100, scroll_height=1000)
    assert needs_more(scroll_top=850, client_height=100, scroll_height=1000, threshold=60)


def test_visible_range_applies_overscan():
    window = visible_range(scroll_offset=650, viewport_height=500, count=1000, row_height=65, overscan=5)

    assert window.start == 5
    assert window.end == 23
    assert window.offset == 5 * 65
    assert window.total_height == 65000


def test_visible_range_clamps_to_list_bounds():
    assert visible_range(0, 500, 3).end == 3
    tail = visible_range(10_000_000, 500, 100, row_height=65, overscan=5)
    assert tail.end == 100
    empty = visible_range(0, 500, 0)
    assert (empty.start, empty.end) == (0, 0)
