from fastapi import APIRouter, Depends, HTTPException, Query, status

from slotboard.api.deps import get_catalog, get_store, require_table
from slotboard.core.config import get_settings
from slotboard.core.exceptions import AppError, ResourceNotFoundError
from slotboard.schemas.placement import RelocateRequest
from slotboard.schemas.timetable import (
    AddCourseRequest,
    ConflictReport,
    DuplicateTableOut,
    Session,
    SessionUpdate,
    TableOut,
    TimetableSnapshot,
    validate_day_label,
)
from slotboard.services.catalog import CatalogRepository
from slotboard.services.placement import default_geometry
from slotboard.services.timetable_store import TimetableStore

router = APIRouter()

settings = get_settings()


@router.get("/", response_model=TimetableSnapshot)
def list_tables(store: TimetableStore = Depends(get_store)) -> TimetableSnapshot:
    return store.snapshot()


@router.get("/{table_id}", response_model=TableOut)
def get_table(table_id: str = Depends(require_table), store: TimetableStore = Depends(get_store)) -> TableOut:
    position = store.table_ids().index(table_id) + 1
    return TableOut(id=table_id, position=position, sessions=list(store.sessions(table_id)))


@router.post("/{table_id}/duplicate", response_model=DuplicateTableOut, status_code=status.HTTP_201_CREATED)
def duplicate_table(table_id: str, store: TimetableStore = Depends(get_store)) -> DuplicateTableOut:
    new_id = store.add_table(table_id)
    if new_id is None:
        raise ResourceNotFoundError("Timetable", table_id)
    return DuplicateTableOut(source_id=table_id, table_id=new_id)


@router.delete("/{table_id}")
def remove_table(table_id: str, store: TimetableStore = Depends(get_store)) -> dict:
    if not store.remove_table(table_id):
        raise ResourceNotFoundError("Timetable", table_id)
    return {"success": True, "version": store.version}


@router.post("/{table_id}/sessions", response_model=TableOut, status_code=status.HTTP_201_CREATED)
def add_course(
    payload: AddCourseRequest,
    table_id: str = Depends(require_table),
    store: TimetableStore = Depends(get_store),
    catalog: CatalogRepository = Depends(get_catalog),
) -> TableOut:
    course = payload.course
    if course is None and payload.course_id is not None:
        course = catalog.find(payload.course_id)
        if course is None:
            raise ResourceNotFoundError("Course", payload.course_id)
    if course is None:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="course or courseId is required")

    store.add_course(table_id, course, settings.schedule_separator)
    return get_table(table_id, store)


@router.delete("/{table_id}/sessions")
def remove_session(
    day: str = Query(min_length=1),
    period: int = Query(ge=1),
    table_id: str = Depends(require_table),
    store: TimetableStore = Depends(get_store),
) -> dict:
    try:
        day = validate_day_label(day)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    removed = store.remove_session(table_id, day, period)
    return {"removed": removed, "version": store.version}


@router.put("/{table_id}/sessions/{index}", response_model=Session)
def update_session(
    index: int,
    payload: SessionUpdate,
    table_id: str = Depends(require_table),
    store: TimetableStore = Depends(get_store),
) -> Session:
    updated = store.update_session(table_id, index, payload.day, payload.periods)
    if updated is None:
        raise ResourceNotFoundError("Session", f"{table_id}:{index}")
    return updated


@router.post("/{table_id}/sessions/{index}/relocate", response_model=Session)
def relocate_session(
    index: int,
    payload: RelocateRequest,
    table_id: str = Depends(require_table),
    store: TimetableStore = Depends(get_store),
) -> Session:
    geometry = payload.geometry or default_geometry(settings)
    moved = store.relocate_session(table_id, index, payload.delta, geometry)
    if moved is None:
        raise ResourceNotFoundError("Session", f"{table_id}:{index}")
    return moved


@router.get("/{table_id}/conflicts", response_model=ConflictReport)
def table_conflicts(table_id: str = Depends(require_table), store: TimetableStore = Depends(get_store)) -> ConflictReport:
    try:
        conflicts = store.conflicts(table_id, settings.mask_bits_per_day)
    except ValueError as exc:
        raise AppError(str(exc), status_code=422) from exc
    return ConflictReport(table_id=table_id, conflicts=conflicts)
