"""Alert panel router."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Query, Request

from powerhouse.models import Alert

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


@router.get(
    "",
    response_model=list[Alert],
    summary="Stored alerts, newest first",
)
async def list_alerts(
    request: Request,
    limit: int | None = Query(None, ge=1, le=100, description="Max alerts returned"),
) -> list[Alert]:
    return request.app.state.alert_store.get(limit)


@router.delete(
    "",
    summary="Clear all stored alerts",
)
async def clear_alerts(request: Request) -> dict[str, Any]:
    store = request.app.state.alert_store
    cleared = len(store)
    store.clear()
    logger.info("Cleared %d alert(s)", cleared)
    return {"status": "cleared", "count": cleared}
