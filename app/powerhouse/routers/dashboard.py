"""
Dashboard router.

Serves the snapshot behind every dashboard panel: KPI cards, product
performance, supplier SourceScore tables, inventory risk, the daily
revenue/cost trend and per-customer pricing history.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Query, Request

from powerhouse.models import (
    CustomerLastPrices,
    DashboardKPIs,
    DashboardSnapshot,
    InventoryRiskRow,
    ProductAggregate,
    RevenueTrendPoint,
    SupplierScoreRow,
)
from powerhouse.services.aggregation import SortDirection, SortKey, sort_products
from powerhouse.services.data_sources import DataSource, DataSourceError
from powerhouse.services.inventory import assess_inventory
from powerhouse.services.snapshot import build_snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["dashboard"])


def _source(request: Request) -> DataSource:
    return request.app.state.data_source


def _snapshot(request: Request, start: str | None, end: str | None) -> DashboardSnapshot:
    """Build a snapshot, mapping upstream failures to 502."""
    try:
        return build_snapshot(_source(request), start=start, end=end)
    except DataSourceError as exc:
        logger.warning("Data source unavailable: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /snapshot
# ---------------------------------------------------------------------------
@router.get(
    "/snapshot",
    response_model=DashboardSnapshot,
    summary="Every dashboard view for one point in time",
)
async def get_snapshot(
    request: Request,
    start: str | None = Query(None, description="First quote date (ISO, inclusive)"),
    end: str | None = Query(None, description="Last quote date (ISO, inclusive)"),
) -> DashboardSnapshot:
    """Return KPIs, product rollups, supplier rankings, inventory risk and the
    revenue trend computed from the same set of source records.
    """
    try:
        return _snapshot(request, start, end)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to build snapshot")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /kpis
# ---------------------------------------------------------------------------
@router.get(
    "/kpis",
    response_model=DashboardKPIs,
    summary="Whole-business KPIs",
)
async def get_kpis(
    request: Request,
    start: str | None = Query(None, description="First quote date (ISO, inclusive)"),
    end: str | None = Query(None, description="Last quote date (ISO, inclusive)"),
) -> DashboardKPIs:
    """Return revenue, cost, profit, gross margin and active counts."""
    try:
        return _snapshot(request, start, end).kpis
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to compute KPIs")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /products
# ---------------------------------------------------------------------------
@router.get(
    "/products",
    response_model=list[ProductAggregate],
    summary="Per-product revenue, cost and margin",
)
async def get_products(
    request: Request,
    start: str | None = Query(None, description="First quote date (ISO, inclusive)"),
    end: str | None = Query(None, description="Last quote date (ISO, inclusive)"),
    sort: SortKey = Query("margin", description="Sort by margin, revenue or units"),
    direction: SortDirection = Query("desc", description="asc or desc"),
) -> list[ProductAggregate]:
    """Return product performance rows, highest margin first by default."""
    try:
        snapshot = _snapshot(request, start, end)
        return sort_products(snapshot.product_aggregates, sort, direction)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to fetch product performance")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /suppliers/{product_id}
# ---------------------------------------------------------------------------
@router.get(
    "/suppliers/{product_id}",
    response_model=list[SupplierScoreRow],
    summary="Suppliers for a product ranked by SourceScore",
)
async def get_supplier_ranking(request: Request, product_id: str) -> list[SupplierScoreRow]:
    """Return the product's suppliers, best SourceScore first."""
    try:
        rows = _snapshot(request, None, None).supplier_rows_by_product.get(product_id)
        if not rows:
            raise HTTPException(
                status_code=404,
                detail=f"No supplier costs for product {product_id}",
            )
        return rows
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to rank suppliers for %s", product_id)
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /inventory-risk
# ---------------------------------------------------------------------------
@router.get(
    "/inventory-risk",
    response_model=list[InventoryRiskRow],
    summary="Stockout risk and restock suggestions",
)
async def get_inventory_risk(
    request: Request,
    at_risk_only: bool = Query(False, description="Only batches at stockout risk"),
) -> list[InventoryRiskRow]:
    """Return every inventory batch with its risk flag and restock quantity."""
    try:
        return assess_inventory(_source(request).fetch_inventory(), at_risk_only)
    except DataSourceError as exc:
        logger.warning("Data source unavailable: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception("Failed to assess inventory")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /revenue-trend
# ---------------------------------------------------------------------------
@router.get(
    "/revenue-trend",
    response_model=list[RevenueTrendPoint],
    summary="Daily revenue versus cost",
)
async def get_revenue_trend(
    request: Request,
    start: str | None = Query(None, description="First quote date (ISO, inclusive)"),
    end: str | None = Query(None, description="Last quote date (ISO, inclusive)"),
) -> list[RevenueTrendPoint]:
    try:
        return _snapshot(request, start, end).revenue_trend
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Failed to compute revenue trend")
        raise HTTPException(status_code=500, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# GET /pricing-history
# ---------------------------------------------------------------------------
@router.get(
    "/pricing-history",
    response_model=CustomerLastPrices,
    summary="Last prices a customer paid for a product",
)
async def get_pricing_history(
    request: Request,
    customer: str = Query(..., description="Customer name"),
    product_id: str = Query(..., description="Product identifier"),
    n: int = Query(3, ge=1, le=3, description="Number of prices"),
) -> CustomerLastPrices:
    """Return up to three of the customer's most recent prices, newest first."""
    try:
        return _source(request).fetch_customer_last_prices(customer, product_id, n)
    except DataSourceError as exc:
        logger.warning("Data source unavailable: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except Exception as exc:
        logger.exception(
            "Failed to fetch pricing history for %s / %s", customer, product_id
        )
        raise HTTPException(status_code=500, detail=str(exc)) from exc
