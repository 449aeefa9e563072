"""
Margin-leak router.

``GET /api/v1/margin-leaks`` previews the current leaks without side
effects.  ``/api/v1/margin-leaks/run`` runs the weekly job on demand (or from
an external cron) and posts the alert to the alert panel.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request

from powerhouse.models import MarginLeakReport
from powerhouse.services.data_sources import DataSourceError
from powerhouse.services.margin_leak import detect_margin_leaks
from powerhouse.services.snapshot import build_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/margin-leaks", tags=["margin-leak"])


# ---------------------------------------------------------------------------
# GET /
# ---------------------------------------------------------------------------
@router.get(
    "",
    response_model=MarginLeakReport,
    summary="Quotes below the 25% margin policy",
)
async def get_margin_leaks(
    request: Request,
    start: str | None = Query(None, description="First quote date (ISO, inclusive)"),
    end: str | None = Query(None, description="Last quote date (ISO, inclusive)"),
) -> MarginLeakReport:
    """Return the leak report, worst margin first.  No alert is posted."""
    try:
        snapshot = build_snapshot(request.app.state.data_source, start=start, end=end)
        return detect_margin_leaks(snapshot)
    except DataSourceError as exc:
        logger.warning("Data source unavailable: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to detect margin leaks")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET|POST /run
# ---------------------------------------------------------------------------
@router.api_route(
    "/run",
    methods=["GET", "POST"],
    response_model=MarginLeakReport,
    summary="Run the margin-leak job and post its alert",
)
async def run_margin_leak(request: Request) -> MarginLeakReport:
    """Run the weekly margin-leak job immediately.

    Shares the scheduler's mutex, so it waits for a scheduled run in flight.
    """
    try:
        return await request.app.state.scheduler.run_now()
    except DataSourceError as exc:
        logger.warning("Margin-leak job could not read data: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Margin-leak job failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
