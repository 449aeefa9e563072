"""
Rexagen Powerhouse Dashboard -- FastAPI application.

Provides REST endpoints for the sales-ops dashboard: KPI cards, product
performance, supplier SourceScore rankings, inventory stockout risk, revenue
trend, customer pricing history, margin-leak reports and the alert panel.

A background scheduler runs the margin-leak job every Monday at 08:30 US
Eastern and posts the result to the alert panel.  Data comes from the
built-in fixtures unless ``DATA_SOURCE=live`` points the app at the upstream
JSON endpoints.
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from powerhouse.routers import alerts, dashboard, margin_leak
from powerhouse.services.alerts import AlertStore
from powerhouse.services.data_sources import DataSource, get_data_source
from powerhouse.services.scheduler import MarginLeakScheduler, run_margin_leak_job
from powerhouse.utils.config import (
    APP_TITLE,
    APP_VERSION,
    LOG_LEVEL,
    SCHEDULER_ENABLED,
    SCHEDULER_INTERVAL_SECONDS,
    STATIC_FILES_DIR,
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan (startup / shutdown)
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the margin-leak scheduler on startup and stop it on shutdown."""
    logger.info("Starting %s v%s", APP_TITLE, APP_VERSION)
    scheduler: MarginLeakScheduler = app.state.scheduler
    if app.state.scheduler_enabled:
        scheduler.start()
    yield
    await scheduler.stop()
    logger.info("Shutting down %s", APP_TITLE)


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
def create_app(
    data_source: DataSource | None = None,
    alert_store: AlertStore | None = None,
    *,
    enable_scheduler: bool = SCHEDULER_ENABLED,
    static_dir: str | None = None,
) -> FastAPI:
    """Build the FastAPI app.

    Parameters
    ----------
    data_source:
        Source of quotes, supplier costs and inventory.  Defaults to the one
        selected by the ``DATA_SOURCE`` setting.
    alert_store:
        Alert buffer shared by the API and the scheduler.
    enable_scheduler:
        Run the weekly margin-leak job while the app is serving.  The
        on-demand run endpoint works either way.
    static_dir:
        Directory holding a prebuilt UI bundle; served at ``/`` when present.
    """
    app = FastAPI(
        title=APP_TITLE,
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.data_source = data_source if data_source is not None else get_data_source()
    app.state.alert_store = alert_store if alert_store is not None else AlertStore()
    app.state.scheduler = MarginLeakScheduler(
        lambda: run_margin_leak_job(app.state.data_source, app.state.alert_store),
        interval_seconds=SCHEDULER_INTERVAL_SECONDS,
    )
    app.state.scheduler_enabled = enable_scheduler

    # CORS -- the UI may be hosted separately from the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, str]:
        """Return a simple health-check response."""
        return {"status": "healthy", "version": APP_VERSION}

    app.include_router(dashboard.router)
    app.include_router(margin_leak.router)
    app.include_router(alerts.router)

    # Static files (frontend) -- must be last so it doesn't shadow API routes
    if static_dir is None:
        static_dir = os.path.join(os.path.dirname(__file__), "..", STATIC_FILES_DIR)
    if os.path.isdir(static_dir):
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        logger.info("Mounted static files from %s", static_dir)
    else:
        logger.warning(
            "Static directory %s not found; frontend will not be served", static_dir
        )

    return app


app = create_app()
