"""
CineVerse API — FastAPI application entry point.

Routers are registered here. Each service lives in cineverse/api/.
"""
import asyncio
import contextlib
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from cineverse.api import activity, auth, lists, movies, reviews, users
from cineverse.core.config import settings
from cineverse.middleware import setup_middleware
from cineverse.services.activity_service import run_purge_loop

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    purge_task = None
    if settings.ACTIVITY_PURGE_INTERVAL_SECONDS > 0:
        purge_task = asyncio.create_task(run_purge_loop(settings.ACTIVITY_PURGE_INTERVAL_SECONDS))
    logger.info("startup", env=settings.APP_ENV, activity_purge=purge_task is not None)
    yield
    if purge_task is not None:
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task


app = FastAPI(
    title="CineVerse API",
    description="Backend for the CineVerse movie discovery and review app.",
    version="1.0.0",
    docs_url="/api/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/api/redoc" if settings.ENABLE_DOCS else None,
    openapi_url="/api/openapi.json" if settings.ENABLE_DOCS else None,
    lifespan=lifespan,
)

setup_middleware(app, settings)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(auth.router,     prefix="/api/auth",     tags=["auth"])
app.include_router(movies.router,   prefix="/api/movies",   tags=["movies"])
app.include_router(users.router,    prefix="/api/users",    tags=["users"])
app.include_router(reviews.router,  prefix="/api/reviews",  tags=["reviews"])
app.include_router(lists.router,    prefix="/api/lists",    tags=["lists"])
app.include_router(activity.router, prefix="/api/activity", tags=["activity"])


# ── Health check ──────────────────────────────────────────────────────────────
@app.get("/api/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"success": True, "status": "ok", "version": app.version, "env": settings.APP_ENV}
