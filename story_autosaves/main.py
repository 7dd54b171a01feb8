"""Main FastAPI application."""

import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from .api import StoriesController, StoryAutosavesController
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import setup_logging
from .database import engine, Base, get_db, DATABASE_URL
from .exceptions import AutosaveApiException
from .middleware.exception_handler import autosave_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .rest import RestServer

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


def _mask_url(url: str) -> str:
    """Mask password in database URL for safe logging."""
    return re.sub(r'://([^:]+):([^@]+)@', r'://\1:***@', url)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the story autosaves API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT and not settings.auth_enabled:
        logger.warning(
            "SECURITY: Authentication is disabled (AUTH_ENABLED=false). "
            "Every request runs as the development admin."
        )

    logger.info(f"Connecting to database: {_mask_url(DATABASE_URL)}")
    Base.metadata.create_all(bind=engine)

    yield  # App runs here


app = FastAPI(
    title="Story Autosaves API",
    description=(
        "Stories and their per-author autosaves. Autosave creation validates "
        "against the story's own update rules, and autosave responses carry the "
        "story's structured payload.\n\n"
        "**Authentication:** When `AUTH_ENABLED=true`, requests need a `Bearer` "
        "token in the `Authorization` header."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware stack (outermost first: CORS wraps request context).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(AutosaveApiException, autosave_exception_handler)

# Route registration: the story routes first, then the autosave routes, whose
# collection route replaces the generic one with the story-validated version.
server = RestServer()
stories_controller = StoriesController(settings.rest_namespace, settings.stories_rest_base)
autosaves_controller = StoryAutosavesController(stories_controller, settings.autosaves_rest_base)
stories_controller.register_routes(server.routes)
autosaves_controller.register_routes(server.routes)
server.mount(app)

logger.info(
    "Story autosaves API started | env=%s | db=%s | auth=%s | routes=%d",
    settings.environment.value,
    "PostgreSQL" if DATABASE_URL.startswith("postgresql") else "SQLite",
    "enabled" if settings.auth_enabled else "disabled",
    len(server.routes),
)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "Story Autosaves API",
        "version": "1.0.0",
        "status": "running",
        "namespace": f"/{settings.rest_namespace}",
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint returning database status, uptime, and story count.

    Never raises; returns degraded status on DB failure so load balancers
    can still probe without receiving 5xx.
    """
    db_status = "ok"
    story_count = 0
    try:
        db.execute(text("SELECT 1"))
        story_count = db.execute(text("SELECT COUNT(*) FROM stories")).scalar() or 0
    except Exception:
        logger.exception("Health check database probe failed")
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": "1.0.0",
        "story_count": story_count,
    }
