"""
Dashboard snapshot composer.

Runs the aggregation, supplier ranking, inventory and trend computations over
one set of quotes, supplier costs and inventory batches so every dashboard
panel reflects the same point in time.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from powerhouse.models import DashboardSnapshot, InventoryBatch, Quote, SupplierCost
from powerhouse.services.aggregation import (
    aggregate_products,
    compute_kpis,
    revenue_trend,
)
from powerhouse.services.data_sources import DataSource
from powerhouse.services.inventory import assess_inventory
from powerhouse.services.supplier_ranking import rank_all_suppliers
from powerhouse.utils.civil_time import utc_now

logger = logging.getLogger(__name__)


def compose_snapshot(
    transactions: Iterable[Quote],
    supplier_costs: Iterable[SupplierCost],
    inventory: Iterable[InventoryBatch],
    reference_time: datetime,
) -> DashboardSnapshot:
    """Compute every derived dashboard view from the source collections.

    Pure: the result depends only on the arguments.
    """
    quotes = list(transactions)
    costs = list(supplier_costs)
    batches = list(inventory)

    aggregates = aggregate_products(quotes)

    return DashboardSnapshot(
        reference_time=reference_time,
        transactions=quotes,
        supplier_costs=costs,
        inventory=batches,
        product_aggregates=aggregates,
        kpis=compute_kpis(quotes, aggregates),
        supplier_rows_by_product=rank_all_suppliers(costs, quotes),
        inventory_risk=assess_inventory(batches),
        revenue_trend=revenue_trend(quotes),
    )


def build_snapshot(
    source: DataSource,
    *,
    start: str | None = None,
    end: str | None = None,
    reference_time: datetime | None = None,
) -> DashboardSnapshot:
    """Fetch the source collections and compose a snapshot.

    Parameters
    ----------
    source:
        Where quotes, supplier costs and inventory come from.
    start / end:
        Optional inclusive ISO-date window for quotes.
    reference_time:
        Point in time the snapshot represents; defaults to now (UTC).
    """
    quotes = source.fetch_quotes(start=start, end=end)
    costs = source.fetch_supplier_costs()
    inventory = source.fetch_inventory()
    logger.info(
        "Composing snapshot: %d quotes, %d supplier costs, %d inventory batches",
        len(quotes),
        len(costs),
        len(inventory),
    )
    return compose_snapshot(
        quotes,
        costs,
        inventory,
        reference_time if reference_time is not None else utc_now(),
    )
