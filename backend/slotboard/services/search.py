"""Catalog filtering and the search session that drives it.

``filter_catalog`` is a pure function of the catalog and the options. The
``SearchSession`` re-runs it on every option change as a cooperative asyncio
job; a job whose token is no longer the latest abandons itself, so only the
most recent options ever produce a visible result.
"""
from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable, Sequence

from slotboard.schemas.search import SearchOptions, SearchResultPage, TimeSlot, VisibleRange
from slotboard.schemas.timetable import SearchContext
from slotboard.services.catalog import AnnotatedCourse, CatalogRepository

logger = logging.getLogger(__name__)

TIME_SLOTS: tuple[TimeSlot, ...] = tuple(
    TimeSlot(id=index, label=label)
    for index, label in enumerate(
        [
            "09:00~09:30",
            "09:30~10:00",
            "10:00~10:30",
            "10:30~11:00",
            "11:00~11:30",
            "11:30~12:00",
            "12:00~12:30",
            "12:30~13:00",
            "13:00~13:30",
            "13:30~14:00",
            "14:00~14:30",
            "14:30~15:00",
            "15:00~15:30",
            "15:30~16:00",
            "16:00~16:30",
            "16:30~17:00",
            "17:00~17:30",
            "17:30~18:00",
            "18:00~18:50",
            "18:55~19:45",
            "19:50~20:40",
            "20:45~21:35",
            "21:40~22:30",
            "22:35~23:25",
        ],
        start=1,
    )
)


def matches(entry: AnnotatedCourse, options: SearchOptions, query_lower: str | None = None) -> bool:
    course = entry.course
    if query_lower is None:
        query_lower = options.query.lower()

    if query_lower and query_lower not in entry.title_lower and query_lower not in entry.id_lower:
        return False
    if options.grades and course.grade not in options.grades:
        return False
    if options.majors and course.major not in options.majors:
        return False
    if options.credits and not course.credits.startswith(str(options.credits)):
        return False
    if options.days and not any(block.day in options.days for block in entry.blocks):
        return False
    if options.periods and not any(
        period in options.periods for block in entry.blocks for period in block.periods
    ):
        return False
    return True


def filter_catalog(entries: Iterable[AnnotatedCourse], options: SearchOptions) -> list[AnnotatedCourse]:
    """Keep entries satisfying every active option, in catalog order."""
    query_lower = options.query.lower()
    return [entry for entry in entries if matches(entry, options, query_lower)]


class ResultWindow:
    """Growing prefix of a filtered result, one page at a time."""

    def __init__(self, page_size: int = 100) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.page_size = page_size
        self._pages = 1

    @property
    def limit(self) -> int:
        return self._pages * self.page_size

    def visible(self, results: Sequence[AnnotatedCourse]) -> Sequence[AnnotatedCourse]:
        return results[: self.limit]

    def has_more(self, total: int) -> bool:
        return self.limit < total

    def load_more(self, total: int) -> bool:
        if not self.has_more(total):
            return False
        self._pages += 1
        return True

    def reset(self) -> None:
        self._pages = 1


def needs_more(scroll_top: float, client_height: float, scroll_height: float, threshold: float = 0.0) -> bool:
    """True when the viewport bottom is within ``threshold`` pixels of the content end."""
    return scroll_top + client_height >= scroll_height - threshold


def visible_range(
    scroll_offset: float,
    viewport_height: float,
    count: int,
    row_height: float = 65.0,
    overscan: int = 5,
) -> VisibleRange:
    """Rows to materialize for a virtualized list of ``count`` fixed-height rows."""
    total_height = count * row_height
    if count == 0 or viewport_height <= 0:
        return VisibleRange(start=0, end=0, offset=0.0, total_height=total_height)

    scroll_offset = min(max(scroll_offset, 0.0), max(total_height - viewport_height, 0.0))
    first = int(scroll_offset // row_height)
    last = int(math.ceil((scroll_offset + viewport_height) / row_height))
    start = max(first - overscan, 0)
    end = min(last + overscan, count)
    return VisibleRange(start=start, end=end, offset=start * row_height, total_height=total_height)


class SearchSession:
    """Latest-wins filtering over the current catalog snapshot."""

    def __init__(self, catalog: CatalogRepository, *, page_size: int = 100, yield_every: int = 500) -> None:
        self._catalog = catalog
        self._yield_every = max(1, yield_every)
        self._options = SearchOptions()
        self._token = 0
        self._applied_token = 0
        self._results: tuple[AnnotatedCourse, ...] = ()
        self._task: asyncio.Task | None = None
        self.window = ResultWindow(page_size)
        catalog.subscribe(self._on_catalog_changed)

    @property
    def options(self) -> SearchOptions:
        return self._options

    @property
    def token(self) -> int:
        return self._token

    @property
    def applied_token(self) -> int:
        return self._applied_token

    @property
    def results(self) -> tuple[AnnotatedCourse, ...]:
        return self._results

    def submit(self, options: SearchOptions) -> int:
        """Schedule a filter job for ``options``; any pending job is superseded."""
        self._options = options
        self._token += 1
        self.window.reset()
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._token, options, self._catalog.entries)
        )
        return self._token

    def change_option(self, field: str, value: object) -> int:
        data = self._options.model_dump()
        data[field] = value
        return self.submit(SearchOptions.model_validate(data))

    def open(self, context: SearchContext | None) -> int:
        """Pre-select the clicked cell's day and period, clearing them otherwise."""
        data = self._options.model_dump()
        data["days"] = [context.day] if context and context.day else []
        data["periods"] = [context.period] if context and context.period else []
        self._catalog.ensure_loaded()
        return self.submit(SearchOptions.model_validate(data))

    async def settle(self) -> None:
        """Wait until the most recently submitted job has finished."""
        while self._task is not None:
            task = self._task
            await task
            if task is self._task:
                return

    def load_more(self) -> bool:
        return self.window.load_more(len(self._results))

    def page(self) -> SearchResultPage:
        visible = self.window.visible(self._results)
        return SearchResultPage(
            token=self._applied_token,
            total=len(self._results),
            shown=len(visible),
            has_more=self.window.has_more(len(self._results)),
            items=[entry.course for entry in visible],
        )

    def _on_catalog_changed(self) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            self._results = tuple(filter_catalog(self._catalog.entries, self._options))
            return
        self.submit(self._options)

    async def _run(self, token: int, options: SearchOptions, entries: tuple[AnnotatedCourse, ...]) -> None:
        query_lower = options.query.lower()
        matched: list[AnnotatedCourse] = []
        for position, entry in enumerate(entries, start=1):
            if matches(entry, options, query_lower):
                matched.append(entry)
            if position % self._yield_every == 0:
                await asyncio.sleep(0)
                if token != self._token:
                    logger.debug("Search job %d superseded by %d after %d entries", token, self._token, position)
                    return

        if token != self._token:
            logger.debug("Search job %d superseded by %d", token, self._token)
            return
        self._results = tuple(matched)
        self._applied_token = token
