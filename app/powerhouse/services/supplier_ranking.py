"""
Supplier ranking service.

Scores every supplier offering a product with SourceScore and returns them
best first.  The margin component is measured against a reference sale
price: the product's most recent quoted unit price, or a synthetic price at
the 30% minimum-margin floor when the product has never been quoted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from powerhouse.models import Quote, SupplierCost, SupplierScoreRow
from powerhouse.services.scoring import (
    clamp01,
    margin_pct,
    normalize_speed,
    source_score,
)

logger = logging.getLogger(__name__)

# Minimum acceptable margin; sets the synthetic reference price
BASE_MARGIN_MIN = 0.30


def _format_lead(lead_min: float, lead_max: float) -> str:
    return f"{lead_min:g}-{lead_max:g}d"


def latest_quote(product_id: str, transactions: Iterable[Quote]) -> Quote | None:
    """Return the product's quote with the latest date (first one on ties)."""
    latest: Quote | None = None
    for q in transactions:
        if q.product_id != product_id:
            continue
        if latest is None or q.date > latest.date:
            latest = q
    return latest


def reference_price(
    product_id: str,
    transactions: Iterable[Quote],
    landed: float,
) -> float:
    """Sale price a supplier's landed cost is measured against."""
    quote = latest_quote(product_id, transactions)
    if quote is not None:
        return quote.unit_price
    return landed * (1 + BASE_MARGIN_MIN)


def score_supplier(cost: SupplierCost, price: float) -> SupplierScoreRow:
    """Compute landed cost and SourceScore components for one cost record."""
    landed = cost.landed_cost
    m_score = clamp01(margin_pct(price, landed))
    s_score = clamp01(normalize_speed(cost.lead_min))
    r_score = clamp01(cost.reliability_score / 100)

    return SupplierScoreRow(
        supplier_id=cost.supplier_id,
        product_id=cost.product_id,
        region=cost.region,
        landed_cost=landed,
        lead=_format_lead(cost.lead_min, cost.lead_max),
        reliability=cost.reliability_score,
        moq=cost.moq_units,
        effective_date=cost.effective_date,
        reference_price=price,
        margin_score=m_score,
        speed_score=s_score,
        reliability_score=r_score,
        source_score=source_score(m_score, s_score, r_score),
    )


def rank_suppliers(
    costs: Iterable[SupplierCost],
    price: float | None = None,
    transactions: Sequence[Quote] = (),
) -> list[SupplierScoreRow]:
    """Rank one product's supplier cost records by SourceScore, best first.

    Parameters
    ----------
    costs:
        Cost records, all for the same product.
    price:
        Reference sale price.  When ``None`` it is looked up per record from
        *transactions* (falling back to the margin floor).
    transactions:
        Quotes used to find the most recent sale price.

    Suppliers with equal scores keep their input order.
    """
    rows = []
    for cost in costs:
        ref = price
        if ref is None:
            ref = reference_price(cost.product_id, transactions, cost.landed_cost)
        rows.append(score_supplier(cost, ref))
    return sorted(rows, key=lambda r: r.source_score, reverse=True)


def rank_all_suppliers(
    costs: Iterable[SupplierCost],
    transactions: Sequence[Quote],
) -> dict[str, list[SupplierScoreRow]]:
    """Rank suppliers for every product that has cost records.

    Products are keyed in the order their first cost record appears.
    """
    by_product: dict[str, list[SupplierCost]] = {}
    for cost in costs:
        by_product.setdefault(cost.product_id, []).append(cost)

    ranked = {
        pid: rank_suppliers(group, transactions=transactions)
        for pid, group in by_product.items()
    }
    logger.debug("Ranked suppliers for %d products", len(ranked))
    return ranked
