from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError

from slotboard.api.deps import get_catalog, get_search_session, get_store
from slotboard.core.config import get_settings
from slotboard.core.exceptions import AppError, ResourceNotFoundError
from slotboard.schemas.search import (
    MajorOption,
    ScrollPosition,
    SearchOptions,
    SearchOptionsPatch,
    SearchResultPage,
    TimeSlot,
    VisibleRange,
)
from slotboard.schemas.timetable import SearchContext
from slotboard.services.catalog import CatalogRepository
from slotboard.services.search import TIME_SLOTS, SearchSession, needs_more, visible_range
from slotboard.services.timetable_store import TimetableStore

router = APIRouter()

settings = get_settings()


async def _current_page(session: SearchSession, catalog: CatalogRepository) -> None:
    await catalog.wait_until_loaded(settings.catalog_wait_seconds)
    if session.token == 0:
        session.submit(session.options)
    await session.settle()


@router.post("/open", response_model=SearchContext)
async def open_search(
    payload: SearchContext,
    store: TimetableStore = Depends(get_store),
    session: SearchSession = Depends(get_search_session),
) -> SearchContext:
    context = store.open_search(payload.table_id, payload.day, payload.period)
    if context is None:
        raise ResourceNotFoundError("Timetable", payload.table_id)
    session.open(context)
    return context


@router.post("/close")
async def close_search(store: TimetableStore = Depends(get_store)) -> dict:
    store.close_search()
    return {"success": True}


@router.get("/context", response_model=SearchContext | None)
async def search_context(store: TimetableStore = Depends(get_store)) -> SearchContext | None:
    return store.search_context


@router.get("/options", response_model=SearchOptions)
async def get_options(session: SearchSession = Depends(get_search_session)) -> SearchOptions:
    return session.options


@router.put("/options")
async def replace_options(payload: SearchOptions, session: SearchSession = Depends(get_search_session)) -> dict:
    return {"token": session.submit(payload)}


@router.patch("/options")
async def change_option(payload: SearchOptionsPatch, session: SearchSession = Depends(get_search_session)) -> dict:
    try:
        token = session.change_option(payload.field, payload.value)
    except ValidationError as exc:
        raise AppError(
            f"Invalid value for search option {payload.field}",
            status_code=422,
            details={"errors": exc.errors(include_url=False, include_context=False)},
        ) from exc
    return {"token": token}


@router.get("/results", response_model=SearchResultPage)
async def search_results(
    session: SearchSession = Depends(get_search_session),
    catalog: CatalogRepository = Depends(get_catalog),
) -> SearchResultPage:
    await _current_page(session, catalog)
    return session.page()


@router.post("/results/more", response_model=SearchResultPage)
async def more_results(
    session: SearchSession = Depends(get_search_session),
    catalog: CatalogRepository = Depends(get_catalog),
) -> SearchResultPage:
    await _current_page(session, catalog)
    session.load_more()
    return session.page()


@router.post("/results/scroll", response_model=SearchResultPage)
async def scroll_results(
    position: ScrollPosition,
    session: SearchSession = Depends(get_search_session),
    catalog: CatalogRepository = Depends(get_catalog),
) -> SearchResultPage:
    await _current_page(session, catalog)
    if needs_more(position.scroll_top, position.client_height, position.scroll_height, position.threshold):
        session.load_more()
    return session.page()


@router.get("/window", response_model=VisibleRange)
async def result_window(
    scroll_offset: float = Query(default=0.0, ge=0),
    viewport_height: float = Query(gt=0),
    session: SearchSession = Depends(get_search_session),
    catalog: CatalogRepository = Depends(get_catalog),
) -> VisibleRange:
    await _current_page(session, catalog)
    return visible_range(
        scroll_offset,
        viewport_height,
        len(session.results),
        row_height=settings.virtual_row_height,
        overscan=settings.virtual_overscan,
    )


@router.get("/majors", response_model=list[MajorOption])
async def list_majors(catalog: CatalogRepository = Depends(get_catalog)) -> list[MajorOption]:
    await catalog.wait_until_loaded(settings.catalog_wait_seconds)
    return [
        MajorOption(value=major, label=major.replace(catalog.separator, " "))
        for major in catalog.all_majors()
    ]


@router.get("/time-slots", response_model=list[TimeSlot])
async def list_time_slots() -> list[TimeSlot]:
    return list(TIME_SLOTS)
