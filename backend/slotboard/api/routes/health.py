from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from slotboard.api.deps import get_catalog, get_store
from slotboard.services.catalog import CatalogRepository
from slotboard.services.timetable_store import TimetableStore

router = APIRouter()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def health_ready(
    catalog: CatalogRepository = Depends(get_catalog),
    store: TimetableStore = Depends(get_store),
) -> JSONResponse:
    ready = catalog.is_loaded
    payload = {
        "status": "ok" if ready else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "catalog": {
            "loaded": catalog.is_loaded,
            "courses": len(catalog),
            "majors": len(catalog.all_majors()),
        },
        "timetables": {
            "count": len(store.table_ids()),
            "version": store.version,
        },
    }
    return JSONResponse(status_code=200 if ready else 503, content=payload)
