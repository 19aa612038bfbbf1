"""In-memory collection of named timetables.

Every mutation builds a new session tuple for the affected table and swaps a
new mapping into place, so readers holding a snapshot never see a table half
way through an update.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from threading import Lock
from types import MappingProxyType

from slotboard.core.exceptions import LastTableRemovalError
from slotboard.schemas.placement import DragDelta, GridGeometry
from slotboard.schemas.timetable import (
    DAY_LABELS,
    ConflictPair,
    CourseDescriptor,
    SearchContext,
    Session,
    TableOut,
    TimeBlock,
    TimetableSnapshot,
)
from slotboard.services.placement import relocate
from slotboard.services.schedule_mask import BITS_PER_DAY, blocks_mask, decode_mask
from slotboard.services.schedule_parser import DEFAULT_SEPARATOR, parse_schedule

logger = logging.getLogger(__name__)

DEFAULT_TABLE_ID = "schedule-1"


class TimetableStore:
    def __init__(
        self,
        initial_tables: Mapping[str, Iterable[Session]] | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if initial_tables is None:
            initial_tables = {DEFAULT_TABLE_ID: ()}
        if not initial_tables:
            raise ValueError("A timetable collection needs at least one table")
        self._tables: dict[str, tuple[Session, ...]] = {
            table_id: tuple(sessions) for table_id, sessions in initial_tables.items()
        }
        self._table_ids: tuple[str, ...] = tuple(self._tables)
        self._version = 0
        self._search_context: SearchContext | None = None
        self._clock = clock
        self._lock = Lock()

    @property
    def version(self) -> int:
        return self._version

    @property
    def tables(self) -> Mapping[str, tuple[Session, ...]]:
        return MappingProxyType(self._tables)

    @property
    def search_context(self) -> SearchContext | None:
        return self._search_context

    def table_ids(self) -> tuple[str, ...]:
        """Table ids in display order; the same tuple object until the key sequence changes."""
        return self._table_ids

    def has_table(self, table_id: str) -> bool:
        return table_id in self._tables

    def sessions(self, table_id: str) -> tuple[Session, ...]:
        return self._tables.get(table_id, ())

    def snapshot(self) -> TimetableSnapshot:
        tables = self._tables
        return TimetableSnapshot(
            version=self._version,
            tables=[
                TableOut(id=table_id, position=position, sessions=list(sessions))
                for position, (table_id, sessions) in enumerate(tables.items(), start=1)
            ],
        )

    def _commit(self, tables: dict[str, tuple[Session, ...]]) -> None:
        self._tables = tables
        self._version += 1
        keys = tuple(tables)
        if keys != self._table_ids:
            self._table_ids = keys

    def _fresh_table_id(self) -> str:
        stamp = int(self._clock() * 1000)
        while f"schedule-{stamp}" in self._tables:
            stamp += 1
        return f"schedule-{stamp}"

    def add_table(self, from_table_id: str) -> str | None:
        """Copy ``from_table_id`` into a new table appended at the end."""
        with self._lock:
            source = self._tables.get(from_table_id)
            if source is None:
                logger.debug("Duplicate skipped: table %s does not exist", from_table_id)
                return None
            table_id = self._fresh_table_id()
            self._commit({**self._tables, table_id: tuple(source)})
        logger.debug("Duplicated table %s as %s", from_table_id, table_id)
        return table_id

    def remove_table(self, table_id: str) -> bool:
        with self._lock:
            if table_id not in self._tables:
                return False
            if len(self._tables) == 1:
                logger.info("Refusing to remove %s: it is the last timetable", table_id)
                raise LastTableRemovalError(table_id)
            tables = dict(self._tables)
            del tables[table_id]
            if self._search_context is not None and self._search_context.table_id == table_id:
                self._search_context = None
            self._commit(tables)
        return True

    def append_sessions(self, table_id: str, blocks: Iterable[TimeBlock], course: CourseDescriptor) -> int:
        added = tuple(Session.from_block(block, course) for block in blocks)
        with self._lock:
            current = self._tables.get(table_id)
            if current is None:
                return 0
            self._commit({**self._tables, table_id: current + added})
        logger.debug("Added %d session(s) of %s to %s", len(added), course.id, table_id)
        return len(added)

    def add_course(self, table_id: str, course: CourseDescriptor, separator: str = DEFAULT_SEPARATOR) -> int:
        """Place every block of ``course`` on the table and close the search."""
        added = self.append_sessions(table_id, parse_schedule(course.schedule, separator), course)
        if self.has_table(table_id):
            self.close_search()
        return added

    def remove_session(self, table_id: str, day: str, period: int) -> int:
        """Remove every session on ``day`` whose periods include ``period``."""
        with self._lock:
            current = self._tables.get(table_id)
            if current is None:
                return 0
            kept = tuple(session for session in current if not session.covers(day, period))
            removed = len(current) - len(kept)
            if removed:
                self._commit({**self._tables, table_id: kept})
        return removed

    def _replace_session(
        self,
        table_id: str,
        current: tuple[Session, ...],
        index: int,
        day: str,
        periods: Iterable[int],
    ) -> Session:
        # Caller holds self._lock.
        updated = Session(
            course=current[index].course,
            day=day,
            periods=tuple(periods),
            room=current[index].room,
        )
        sessions = current[:index] + (updated,) + current[index + 1 :]
        self._commit({**self._tables, table_id: sessions})
        return updated

    def update_session(self, table_id: str, index: int, day: str, periods: Iterable[int]) -> Session | None:
        with self._lock:
            current = self._tables.get(table_id)
            if current is None or not 0 <= index < len(current):
                return None
            return self._replace_session(table_id, current, index, day, periods)

    def relocate_session(
        self,
        table_id: str,
        index: int,
        delta: DragDelta,
        geometry: GridGeometry,
    ) -> Session | None:
        """Snap a drag of session ``index`` and move it, reading and writing under one lock."""
        with self._lock:
            current = self._tables.get(table_id)
            if current is None or not 0 <= index < len(current):
                return None
            placement = relocate(current[index], delta, geometry)
            return self._replace_session(table_id, current, index, placement.day, placement.periods)

    def conflicts(self, table_id: str, bits_per_day: int = BITS_PER_DAY) -> list[ConflictPair]:
        """Pairs of sessions in the table that share a (day, period) slot."""
        sessions = self.sessions(table_id)
        masks = [blocks_mask([TimeBlock(day=s.day, periods=s.periods)], bits_per_day) for s in sessions]
        pairs: list[ConflictPair] = []
        for i, first in enumerate(sessions):
            for j in range(i + 1, len(sessions)):
                shared = masks[i] & masks[j]
                if not shared:
                    continue
                slots = decode_mask(shared, bits_per_day)
                pairs.append(
                    ConflictPair(
                        first_index=i,
                        second_index=j,
                        first_course_id=first.course.id,
                        second_course_id=sessions[j].course.id,
                        day=DAY_LABELS[slots[0][0]],
                        periods=[period for _, period in slots],
                    )
                )
        return pairs

    def open_search(self, table_id: str, day: str | None = None, period: int | None = None) -> SearchContext | None:
        if table_id not in self._tables:
            return None
        self._search_context = SearchContext(table_id=table_id, day=day, period=period)
        return self._search_context

    def close_search(self) -> None:
        self._search_context = None
