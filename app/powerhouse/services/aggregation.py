"""
Quote aggregation service.

Folds a window of quotes into per-product rollups, whole-business KPIs and a
daily revenue/cost trend.  Margins are always computed from accumulated
totals, never as an average of per-quote margins, so one large low-margin
quote weighs in proportion to its revenue.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Literal

from powerhouse.models import (
    DashboardKPIs,
    ProductAggregate,
    Quote,
    RevenueTrendPoint,
    Trend,
)

# Revenue/cost ratios bounding the "flat" trend band
_TREND_UP_RATIO = 1.35
_TREND_DOWN_RATIO = 1.10

SortKey = Literal["margin", "revenue", "units"]
SortDirection = Literal["asc", "desc"]


@dataclass
class _Totals:
    name: str
    revenue: float = 0.0
    cost: float = 0.0
    units: float = 0.0


def _ratio(revenue: float, cost: float) -> float:
    return (revenue - cost) / revenue if revenue > 0 else 0.0


def _classify_trend(revenue: float, cost: float) -> Trend:
    if revenue > cost * _TREND_UP_RATIO:
        return "up"
    if revenue < cost * _TREND_DOWN_RATIO:
        return "down"
    return "flat"


# ---------------------------------------------------------------------------
# Per-product rollup
# ---------------------------------------------------------------------------
def aggregate_products(transactions: Iterable[Quote]) -> list[ProductAggregate]:
    """Group quotes by product and total revenue, cost and units.

    Products appear in the order their first quote appears.  The product
    name is taken from that first quote.
    """
    totals: dict[str, _Totals] = {}
    for q in transactions:
        acc = totals.get(q.product_id)
        if acc is None:
            acc = totals[q.product_id] = _Totals(name=q.product_name)
        acc.revenue += q.units * q.unit_price
        acc.cost += q.units * q.landed_cost
        acc.units += q.units

    return [
        ProductAggregate(
            product_id=pid,
            product_name=acc.name,
            revenue=acc.revenue,
            cost=acc.cost,
            margin_pct=_ratio(acc.revenue, acc.cost),
            units=acc.units,
            trend=_classify_trend(acc.revenue, acc.cost),
        )
        for pid, acc in totals.items()
    ]


# ---------------------------------------------------------------------------
# Whole-business KPIs
# ---------------------------------------------------------------------------
def compute_kpis(
    transactions: Sequence[Quote],
    aggregates: Sequence[ProductAggregate],
) -> DashboardKPIs:
    """Sum the product rollups into the dashboard KPI cards."""
    total_revenue = sum(p.revenue for p in aggregates)
    total_cost = sum(p.cost for p in aggregates)
    profit = total_revenue - total_cost

    return DashboardKPIs(
        total_revenue=total_revenue,
        total_cost=total_cost,
        profit=profit,
        gross_margin_pct=profit / total_revenue if total_revenue > 0 else 0.0,
        active_customers=len({q.customer for q in transactions}),
        active_products=len(aggregates),
    )


# ---------------------------------------------------------------------------
# Daily trend
# ---------------------------------------------------------------------------
def revenue_trend(transactions: Iterable[Quote]) -> list[RevenueTrendPoint]:
    """Return revenue, cost and margin per quote date, oldest first."""
    by_date: dict[str, list[float]] = {}
    for q in transactions:
        day = by_date.setdefault(q.date, [0.0, 0.0])
        day[0] += q.units * q.unit_price
        day[1] += q.units * q.landed_cost

    return [
        RevenueTrendPoint(
            date=date,
            revenue=revenue,
            cost=cost,
            margin_pct=_ratio(revenue, cost),
        )
        for date, (revenue, cost) in sorted(by_date.items())
    ]


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------
_SORT_FIELDS = {
    "margin": "margin_pct",
    "revenue": "revenue",
    "units": "units",
}


def sort_products(
    aggregates: Iterable[ProductAggregate],
    key: SortKey = "margin",
    direction: SortDirection = "desc",
) -> list[ProductAggregate]:
    """Sort product rollups by margin, revenue or units.

    Equal keys keep their input order in both directions.
    """
    try:
        field = _SORT_FIELDS[key]
    except KeyError:
        raise ValueError(f"Unknown sort key '{key}'") from None
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction '{direction}'")

    return sorted(
        aggregates,
        key=lambda p: getattr(p, field),
        reverse=direction == "desc",
    )
