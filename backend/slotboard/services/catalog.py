from __future__ import annotations

import asyncio
import json
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import requests
from pydantic import ValidationError

from slotboard.core.exceptions import CatalogLoadError
from slotboard.schemas.timetable import CourseDescriptor, TimeBlock
from slotboard.services.schedule_parser import DEFAULT_SEPARATOR, parse_schedule

logger = logging.getLogger(__name__)

HEADERS = {"accept": "application/json"}


@dataclass(frozen=True)
class AnnotatedCourse:
    """A catalog entry with its search keys and parsed blocks computed once."""

    course: CourseDescriptor
    title_lower: str
    id_lower: str
    blocks: tuple[TimeBlock, ...]


def annotate(course: CourseDescriptor, separator: str = DEFAULT_SEPARATOR) -> AnnotatedCourse:
    blocks = tuple(parse_schedule(course.schedule, separator)) if course.schedule else ()
    return AnnotatedCourse(
        course=course,
        title_lower=course.title.lower(),
        id_lower=course.id.lower(),
        blocks=blocks,
    )


def fetch_source(source: str, timeout: float) -> list[dict]:
    """Fetch one catalog collection from a URL or a local JSON file."""
    try:
        if source.startswith(("http://", "https://")):
            response = requests.get(source, headers=HEADERS, timeout=timeout)
            response.raise_for_status()
            data = response.json()
        else:
            data = json.loads(Path(source).read_text(encoding="utf-8"))
    except (requests.RequestException, OSError, ValueError) as exc:
        raise CatalogLoadError(source, str(exc)) from exc

    if not isinstance(data, list):
        raise CatalogLoadError(source, "expected a JSON array of courses")
    return data


def build_entries(raw_items: Iterable[object], separator: str = DEFAULT_SEPARATOR) -> list[AnnotatedCourse]:
    entries: list[AnnotatedCourse] = []
    skipped = 0
    for item in raw_items:
        try:
            course = CourseDescriptor.model_validate(item)
        except ValidationError:
            skipped += 1
            continue
        entries.append(annotate(course, separator))
    if skipped:
        logger.warning("Skipped %d malformed catalog entr%s", skipped, "y" if skipped == 1 else "ies")
    return entries


async def load_catalog(
    sources: Sequence[str],
    *,
    timeout: float,
    separator: str = DEFAULT_SEPARATOR,
) -> list[AnnotatedCourse]:
    """Fetch every source concurrently and concatenate them in source order.

    A failing source is logged and contributes no entries; if all fail the
    result is an empty catalog.
    """
    started = time.perf_counter()
    logger.info("Loading catalog from %d source(s)", len(sources))

    results = await asyncio.gather(
        *(asyncio.to_thread(fetch_source, source, timeout) for source in sources),
        return_exceptions=True,
    )

    entries: list[AnnotatedCourse] = []
    for source, result in zip(sources, results):
        if isinstance(result, CatalogLoadError):
            logger.warning("Catalog source %s could not be loaded: %s", source, result.message)
            continue
        if isinstance(result, BaseException):
            raise result
        entries.extend(build_entries(result, separator))

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info("Catalog loaded: %d course(s) in %.1fms", len(entries), elapsed_ms)
    return entries


class CatalogRepository:
    """Holds the current catalog snapshot and tells listeners when it changes."""

    def __init__(
        self,
        sources: Sequence[str] = (),
        *,
        timeout: float = 10.0,
        separator: str = DEFAULT_SEPARATOR,
    ) -> None:
        self._sources = tuple(sources)
        self._timeout = timeout
        self._separator = separator
        self._entries: tuple[AnnotatedCourse, ...] = ()
        self._listeners: list[Callable[[], None]] = []
        self._loaded = asyncio.Event()
        self._load_task: asyncio.Task | None = None

    @property
    def entries(self) -> tuple[AnnotatedCourse, ...]:
        return self._entries

    @property
    def is_loaded(self) -> bool:
        return self._loaded.is_set()

    @property
    def separator(self) -> str:
        return self._separator

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: Callable[[], None]) -> None:
        self._listeners.append(listener)

    def replace(self, entries: Iterable[AnnotatedCourse]) -> None:
        self._entries = tuple(entries)
        self._loaded.set()
        for listener in list(self._listeners):
            listener()

    def replace_courses(self, courses: Iterable[CourseDescriptor]) -> None:
        self.replace(annotate(course, self._separator) for course in courses)

    def ensure_loaded(self) -> asyncio.Task | None:
        """Start a catalog load unless one is running or entries already exist."""
        if self._entries:
            return None
        if self._load_task is not None and not self._load_task.done():
            return self._load_task
        self._load_task = asyncio.get_running_loop().create_task(self._load())
        return self._load_task

    async def _load(self) -> None:
        entries = await load_catalog(self._sources, timeout=self._timeout, separator=self._separator)
        self.replace(entries)

    async def wait_until_loaded(self, timeout: float) -> bool:
        if self._loaded.is_set():
            return True
        try:
            await asyncio.wait_for(self._loaded.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True

    async def close(self) -> None:
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
            try:
                await self._load_task
            except asyncio.CancelledError:
                pass

    def all_majors(self) -> list[str]:
        """Distinct majors in first-seen order."""
        return list(dict.fromkeys(entry.course.major for entry in self._entries if entry.course.major))

    def find(self, course_id: str) -> CourseDescriptor | None:
        for entry in self._entries:
            if entry.course.id == course_id:
                return entry.course
        return None
