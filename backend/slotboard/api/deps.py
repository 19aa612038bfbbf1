from fastapi import Depends, Request

from slotboard.core.exceptions import ResourceNotFoundError
from slotboard.services.catalog import CatalogRepository
from slotboard.services.search import SearchSession
from slotboard.services.timetable_store import TimetableStore


def get_store(request: Request) -> TimetableStore:
    return request.app.state.store


def get_catalog(request: Request) -> CatalogRepository:
    return request.app.state.catalog


def get_search_session(request: Request) -> SearchSession:
    return request.app.state.search


def require_table(table_id: str, store: TimetableStore = Depends(get_store)) -> str:
    if not store.has_table(table_id):
        raise ResourceNotFoundError("Timetable", table_id)
    return table_id
