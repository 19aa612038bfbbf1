from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from slotboard.api.routes import health, schedules, search, tables
from slotboard.core.config import get_settings
from slotboard.core.exceptions import AppError
from slotboard.core.logging_config import configure_logging
from slotboard.core.middleware import RequestSizeLimitMiddleware, RequestTimingMiddleware, SecurityHeadersMiddleware
from slotboard.services.catalog import CatalogRepository
from slotboard.services.search import SearchSession
from slotboard.services.timetable_store import TimetableStore

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    catalog = CatalogRepository(
        settings.catalog_sources,
        timeout=settings.catalog_fetch_timeout_seconds,
        separator=settings.schedule_separator,
    )
    app.state.catalog = catalog
    app.state.store = TimetableStore()
    app.state.search = SearchSession(
        catalog,
        page_size=settings.result_page_size,
        yield_every=settings.filter_yield_every,
    )
    catalog.ensure_loaded()
    yield
    await catalog.close()


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "details": exc.details},
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Raw inputs are left out: a non-finite number cannot be written as JSON.
    errors = [{key: value for key, value in error.items() if key != "input"} for error in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})

app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

app.add_middleware(RequestTimingMiddleware)
app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.max_request_size_bytes)
app.add_middleware(SecurityHeadersMiddleware, settings=settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix=settings.api_prefix, tags=["health"])
app.include_router(tables.router, prefix=f"{settings.api_prefix}/tables", tags=["tables"])
app.include_router(search.router, prefix=f"{settings.api_prefix}/search", tags=["search"])
app.include_router(schedules.router, prefix=f"{settings.api_prefix}/schedules", tags=["schedules"])
