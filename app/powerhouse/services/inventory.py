"""Stockout risk and restock suggestions for inventory batches."""

from __future__ import annotations

from collections.abc import Iterable

from powerhouse.models import InventoryBatch, InventoryRiskRow

# Restock target, in multiples of the 14-day forecast
_RESTOCK_COVER = 2


def restock_units(batch: InventoryBatch) -> float:
    return max(0, _RESTOCK_COVER * batch.forecast_14d - batch.on_hand_units)


def assess_batch(batch: InventoryBatch) -> InventoryRiskRow:
    """Flag a batch whose stock will not cover its 14-day forecast."""
    return InventoryRiskRow(
        product_id=batch.product_id,
        product_name=batch.product_name,
        on_hand_units=batch.on_hand_units,
        forecast_14d=batch.forecast_14d,
        velocity_bucket=batch.velocity_bucket,
        expiry_days=batch.expiry_days,
        stockout_risk=batch.on_hand_units < batch.forecast_14d,
        restock_units=restock_units(batch),
    )


def assess_inventory(
    inventory: Iterable[InventoryBatch],
    at_risk_only: bool = False,
) -> list[InventoryRiskRow]:
    rows = [assess_batch(b) for b in inventory]
    if at_risk_only:
        return [r for r in rows if r.stockout_risk]
    return rows
