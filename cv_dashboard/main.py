"""FastAPI application entry point.

Configures the Basic auth gate, CORS, structured logging, the static
files mount, and router registration.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from cv_dashboard.core.config import settings
from cv_dashboard.core.logging import setup_logging
from cv_dashboard.core.security import BasicAuthMiddleware
from cv_dashboard.routers import health, lots

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


@asynccontextmanager
async def lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: startup and shutdown hooks."""
    setup_logging()
    if not settings.BASIC_AUTH_USER or not settings.BASIC_AUTH_PASSWORD:
        logger.warning("basic_auth_not_configured: every request will be rejected")
    logger.info("Application starting up")
    yield
    logger.info("Application shutting down")


app = FastAPI(
    title="CV Review Dashboard API",
    description="Tableau de bord de revue des CV analyses automatiquement (Recrutement 2025)",
    version="0.1.0",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Basic auth gate
# Added before CORS so that CORS wraps it and answers preflights itself.
# ---------------------------------------------------------------------------
app.add_middleware(
    BasicAuthMiddleware,
    username=settings.BASIC_AUTH_USER,
    password=settings.BASIC_AUTH_PASSWORD,
    realm=settings.AUTH_REALM,
    exempt_paths=settings.AUTH_EXEMPT_PATHS,
)

# ---------------------------------------------------------------------------
# CORS Configuration
# ---------------------------------------------------------------------------
_raw_origins = settings.ALLOWED_ORIGINS.strip()
if _raw_origins == "*":
    _allowed_origins: list[str] = ["*"]
else:
    _allowed_origins = [o.strip() for o in _raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Static files and router registration
# ---------------------------------------------------------------------------
app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


@app.get("/robots.txt", include_in_schema=False)
async def robots_txt() -> FileResponse:
    return FileResponse(STATIC_DIR / "robots.txt", media_type="text/plain")


app.include_router(health.router, tags=["Health"])
app.include_router(lots.router, prefix="/api/v1/lots", tags=["Lots"])
