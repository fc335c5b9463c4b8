from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from calmtrack.core.config import settings
from calmtrack.core.errors import (
    CalmTrackException,
    calmtrack_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)
from calmtrack.core.logging import setup_logging
from calmtrack.db.base import get_store
from calmtrack.db.store import Store
from calmtrack.routers import checkins as checkins_router
from calmtrack.routers import readings as readings_router
from calmtrack.routers import streak as streak_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # A store attached beforehand (tests, embedding) is left to its owner.
    owned = getattr(app.state, "store", None) is None
    if owned:
        setup_logging(settings.LOG_LEVEL)
        app.state.store = Store(settings.DATABASE_URL).open()
    try:
        yield
    finally:
        if owned:
            app.state.store.close()
            app.state.store = None


app = FastAPI(
    title="calmtrack API",
    description=(
        "**Local stress readings and calm-day streaks**\n\n"
        "Runs next to the dashboard on the user's machine and persists to a "
        "local SQLite file.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(CalmTrackException, calmtrack_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(checkins_router.router)
app.include_router(readings_router.router)
app.include_router(streak_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(store: Store = Depends(get_store)):
    """
    Returns `{"status": "ok", "db": "ok", "schema_version": 2}` when the
    local store answers. Returns HTTP 503 otherwise.
    """
    try:
        store.ping()
        version = store.schema_version()
    except CalmTrackException as exc:
        logger.warning("Health check failed: %s", exc.message)
        return JSONResponse(
            status_code=503,
            content={"status": "error", "db": "unreachable"},
        )
    return {"status": "ok", "db": "ok", "schema_version": version}
