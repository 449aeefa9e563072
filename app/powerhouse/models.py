"""
Pydantic data models for the Powerhouse sales-ops API.

Source records (quotes, supplier costs, inventory batches, pricing history)
and every derived view (aggregates, KPIs, supplier scores, margin leaks,
snapshots) are defined here so they can be shared across services, routers,
and tests.

Models use snake_case attributes and camelCase JSON names, matching the
payloads served by the upstream order, supplier and inventory systems.
"""

from __future__ import annotations

from datetime import datetime
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator
from pydantic.alias_generators import to_camel

Region = Literal["US", "CN", "HK", "Other"]
QuoteStatus = Literal["draft", "sent", "accepted", "paid", "declined"]
VelocityBucket = Literal["A", "B", "C"]
Trend = Literal["up", "down", "flat"]


class _Record(BaseModel):
    """Immutable record with camelCase wire names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# ---------------------------------------------------------------------------
# Source records
# ---------------------------------------------------------------------------
class Quote(_Record):
    """A quote or sale recorded by the order system."""

    id: str
    date: str = Field(..., description="ISO date of the quote")
    customer: str
    product_id: str
    product_name: str
    units: float = Field(..., ge=0)
    unit_price: float = Field(..., ge=0, description="Sold price per unit")
    landed_cost: float = Field(..., ge=0, description="Landed cost per unit")
    lead_days: float | None = None
    reliability: float | None = None
    region: Region | None = None
    status: QuoteStatus


class SupplierCost(_Record):
    """One supplier's current cost terms for a product."""

    supplier_id: str
    product_id: str
    region: Region
    unit_cost: float
    shipping_est: float
    duties_est: float
    reliability_score: float = Field(..., description="0-100")
    lead_min: float
    lead_max: float
    moq_units: float
    effective_date: str

    @property
    def landed_cost(self) -> float:
        """Unit cost plus shipping and duties estimates."""
        return self.unit_cost + self.shipping_est + self.duties_est


class InventoryBatch(_Record):
    """On-hand stock and short-term demand forecast for a product."""

    product_id: str
    product_name: str
    on_hand_units: float
    velocity_bucket: VelocityBucket
    forecast_14d: float = Field(..., alias="forecast14d")
    expiry_days: float | None = None


class PriceHistoryEntry(_Record):
    """A single past sale to a customer."""

    date: str
    qty: float
    unit_price_sold: float
    region: Region | None = None
    supplier_id: str | None = None


class CustomerLastPrices(_Record):
    """The most recent prices a customer paid for a product."""

    customer: str
    product_id: str
    product_name: str | None = None
    last3: tuple[PriceHistoryEntry, ...] = ()


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------
class ProductAggregate(_Record):
    """Revenue, cost and margin rolled up over one product's quotes."""

    product_id: str
    product_name: str
    revenue: float
    cost: float
    margin_pct: float
    units: float
    trend: Trend


class DashboardKPIs(_Record):
    """Whole-business metrics shown in the KPI cards."""

    total_revenue: float
    total_cost: float
    profit: float
    gross_margin_pct: float
    active_customers: int
    active_products: int


class SupplierScoreRow(_Record):
    """A supplier's landed cost and SourceScore components for one product."""

    supplier_id: str
    product_id: str
    region: Region
    landed_cost: float
    lead: str = Field(..., description='Lead-time range, e.g. "2-3d"')
    reliability: float = Field(..., description="Raw 0-100 reliability")
    moq: float
    effective_date: str
    reference_price: float
    margin_score: float
    speed_score: float
    reliability_score: float
    source_score: float


class InventoryRiskRow(_Record):
    """Inventory batch with its stockout flag and restock suggestion."""

    product_id: str
    product_name: str
    on_hand_units: float
    forecast_14d: float = Field(..., alias="forecast14d")
    velocity_bucket: VelocityBucket
    expiry_days: float | None = None
    stockout_risk: bool
    restock_units: float


class RevenueTrendPoint(_Record):
    """Revenue and cost totals for one day."""

    date: str
    revenue: float
    cost: float
    margin_pct: float


class MarginLeakRow(_Record):
    """A quote priced below the minimum-margin policy."""

    quote_id: str
    product_name: str
    customer: str
    unit_price: float
    landed_cost: float
    margin_pct: float


class Alert(_Record):
    """An alert shown in the dashboard's alert panel."""

    type: str
    title: str
    message: str
    rows: tuple[MarginLeakRow, ...] = ()
    created_at: datetime | None = None


class MarginLeakReport(_Record):
    """Result of a margin-leak scan."""

    generated_at_et: str = Field(..., alias="generatedAtET")
    total_flagged: int
    rows: tuple[MarginLeakRow, ...]
    alert: Alert


class DashboardSnapshot(_Record):
    """Every dashboard view computed from one consistent set of inputs.

    Deeply immutable: collections are tuples and the per-product supplier
    rankings are a read-only mapping.
    """

    reference_time: datetime
    transactions: tuple[Quote, ...]
    supplier_costs: tuple[SupplierCost, ...]
    inventory: tuple[InventoryBatch, ...]
    product_aggregates: tuple[ProductAggregate, ...]
    kpis: DashboardKPIs
    supplier_rows_by_product: dict[str, tuple[SupplierScoreRow, ...]]
    inventory_risk: tuple[InventoryRiskRow, ...]
    revenue_trend: tuple[RevenueTrendPoint, ...]

    @field_validator("supplier_rows_by_product", mode="after")
    @classmethod
    def freeze_supplier_rows(cls, rows: dict[str, tuple[SupplierScoreRow, ...]]):
        return MappingProxyType(rows)

    @field_serializer("supplier_rows_by_product")
    def serialize_supplier_rows(self, rows) -> dict[str, tuple[SupplierScoreRow, ...]]:
        return dict(rows)
