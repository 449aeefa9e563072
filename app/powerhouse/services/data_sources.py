"""
Data sources for quotes, supplier costs, inventory and pricing history.

``DataSource`` is the capability interface the snapshot composer and the
margin-leak job depend on.  Two implementations exist:

* ``FixtureDataSource`` serves built-in seed data for local development and
  demos.
* ``LiveDataSource`` reads JSON from the upstream order, supplier, inventory
  and pricing-history endpoints.

Which one is used is decided by the ``DATA_SOURCE`` setting; a live source
never falls back to fixtures on failure, it raises ``DataSourceError``.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel, ValidationError

from powerhouse.models import (
    CustomerLastPrices,
    InventoryBatch,
    PriceHistoryEntry,
    Quote,
    SupplierCost,
)
from powerhouse.utils import config
from powerhouse.utils.http_client import DataSourceError, fetch_json

logger = logging.getLogger(__name__)

__all__ = [
    "DataSource",
    "DataSourceError",
    "FixtureDataSource",
    "LiveDataSource",
    "get_data_source",
]


class DataSource(Protocol):
    """Read access to the collections the dashboard is computed from."""

    def fetch_quotes(
        self, start: str | None = None, end: str | None = None
    ) -> list[Quote]:
        """Quotes dated within the optional inclusive ISO-date window."""
        ...

    def fetch_supplier_costs(self, product_id: str | None = None) -> list[SupplierCost]:
        """Supplier cost records, optionally for one product."""
        ...

    def fetch_inventory(self) -> list[InventoryBatch]:
        ...

    def fetch_customer_last_prices(
        self, customer: str, product_id: str, n: int = 3
    ) -> CustomerLastPrices:
        """The last *n* prices *customer* paid for *product_id*, newest first."""
        ...


# ---------------------------------------------------------------------------
# Fixture data
# ---------------------------------------------------------------------------
_SEED_QUOTES: list[dict[str, Any]] = [
    {"id": "Q-1001", "date": "2025-10-27", "customer": "CVS", "productId": "TRZ-10", "productName": "Tirzepatide 10mg Kit", "units": 10, "unitPrice": 120, "landedCost": 80, "leadDays": 3, "reliability": 0.92, "region": "US", "status": "paid"},
    {"id": "Q-1002", "date": "2025-10-28", "customer": "MedCore", "productId": "TRZ-15", "productName": "Tirzepatide 15mg Kit", "units": 4, "unitPrice": 155, "landedCost": 110, "leadDays": 5, "reliability": 0.9, "region": "US", "status": "accepted"},
    {"id": "Q-1003", "date": "2025-10-31", "customer": "RejuvLab", "productId": "GLOW-70", "productName": "GLOW 70mg", "units": 20, "unitPrice": 165, "landedCost": 130, "leadDays": 2, "reliability": 0.95, "region": "US", "status": "paid"},
    {"id": "Q-1004", "date": "2025-10-25", "customer": "MedCore", "productId": "MOTS-10", "productName": "MOTS-C 10mg", "units": 30, "unitPrice": 90, "landedCost": 65, "leadDays": 6, "reliability": 0.88, "region": "CN", "status": "paid"},
    {"id": "Q-1005", "date": "2025-10-23", "customer": "Mike", "productId": "TRZ-30", "productName": "Tirzepatide 30mg Kit", "units": 30, "unitPrice": 115, "landedCost": 95, "leadDays": 5, "reliability": 0.9, "region": "CN", "status": "paid"},
    {"id": "Q-1006", "date": "2025-10-27", "customer": "CVS", "productId": "RT-30", "productName": "Retatrutide 30mg", "units": 15, "unitPrice": 210, "landedCost": 180, "leadDays": 7, "reliability": 0.85, "region": "CN", "status": "sent"},
]

_SEED_SUPPLIER_COSTS: list[dict[str, Any]] = [
    {"supplierId": "SUP-US-01", "productId": "TRZ-10", "region": "US", "unitCost": 70, "shippingEst": 6, "dutiesEst": 4, "reliabilityScore": 95, "leadMin": 2, "leadMax": 3, "moqUnits": 1, "effectiveDate": "2025-10-26"},
    {"supplierId": "SUP-CN-02", "productId": "TRZ-10", "region": "CN", "unitCost": 55, "shippingEst": 10, "dutiesEst": 8, "reliabilityScore": 88, "leadMin": 5, "leadMax": 7, "moqUnits": 5, "effectiveDate": "2025-10-25"},
    {"supplierId": "SUP-US-01", "productId": "TRZ-15", "region": "US", "unitCost": 100, "shippingEst": 8, "dutiesEst": 5, "reliabilityScore": 95, "leadMin": 3, "leadMax": 4, "moqUnits": 1, "effectiveDate": "2025-10-26"},
    {"supplierId": "SUP-US-ELSA", "productId": "GLOW-70", "region": "US", "unitCost": 145, "shippingEst": 8, "dutiesEst": 0, "reliabilityScore": 90, "leadMin": 2, "leadMax": 3, "moqUnits": 1, "effectiveDate": "2025-10-28"},
    {"supplierId": "SUP-CN-ELSA", "productId": "MOTS-10", "region": "CN", "unitCost": 65, "shippingEst": 10, "dutiesEst": 0, "reliabilityScore": 88, "leadMin": 5, "leadMax": 6, "moqUnits": 10, "effectiveDate": "2025-10-25"},
    {"supplierId": "SUP-CN-ZHANG", "productId": "TRZ-30", "region": "CN", "unitCost": 90, "shippingEst": 4, "dutiesEst": 1, "reliabilityScore": 90, "leadMin": 5, "leadMax": 6, "moqUnits": 10, "effectiveDate": "2025-10-08"},
]

_SEED_INVENTORY: list[dict[str, Any]] = [
    {"productId": "TRZ-10", "productName": "Tirzepatide 10mg Kit", "onHandUnits": 60, "velocityBucket": "A", "forecast14d": 40},
    {"productId": "TRZ-15", "productName": "Tirzepatide 15mg Kit", "onHandUnits": 20, "velocityBucket": "B", "forecast14d": 18},
    {"productId": "TRZ-30", "productName": "Tirzepatide 30mg Kit", "onHandUnits": 15, "velocityBucket": "B", "forecast14d": 22},
    {"productId": "GLOW-70", "productName": "GLOW 70mg", "onHandUnits": 37, "velocityBucket": "A", "forecast14d": 28},
    {"productId": "MOTS-10", "productName": "MOTS-C 10mg", "onHandUnits": 30, "velocityBucket": "B", "forecast14d": 26},
]


def _in_window(date: str, start: str | None, end: str | None) -> bool:
    """Inclusive window on the calendar day; any time-of-day part is ignored."""
    day = date[:10]
    if start and day < start[:10]:
        return False
    if end and day > end[:10]:
        return False
    return True


class FixtureDataSource:
    """In-memory data source seeded with sample business data."""

    def __init__(
        self,
        quotes: list[Quote] | None = None,
        supplier_costs: list[SupplierCost] | None = None,
        inventory: list[InventoryBatch] | None = None,
    ):
        self._quotes = (
            quotes if quotes is not None
            else [Quote.model_validate(r) for r in _SEED_QUOTES]
        )
        self._supplier_costs = (
            supplier_costs if supplier_costs is not None
            else [SupplierCost.model_validate(r) for r in _SEED_SUPPLIER_COSTS]
        )
        self._inventory = (
            inventory if inventory is not None
            else [InventoryBatch.model_validate(r) for r in _SEED_INVENTORY]
        )

    def fetch_quotes(
        self, start: str | None = None, end: str | None = None
    ) -> list[Quote]:
        return [q for q in self._quotes if _in_window(q.date, start, end)]

    def fetch_supplier_costs(self, product_id: str | None = None) -> list[SupplierCost]:
        if product_id is None:
            return list(self._supplier_costs)
        return [c for c in self._supplier_costs if c.product_id == product_id]

    def fetch_inventory(self) -> list[InventoryBatch]:
        return list(self._inventory)

    def fetch_customer_last_prices(
        self, customer: str, product_id: str, n: int = 3
    ) -> CustomerLastPrices:
        matching = [
            q for q in self._quotes
            if q.customer == customer and q.product_id == product_id
        ]
        matching.sort(key=lambda q: q.date, reverse=True)
        return CustomerLastPrices(
            customer=customer,
            product_id=product_id,
            product_name=matching[0].product_name if matching else None,
            last3=[
                PriceHistoryEntry(
                    date=q.date,
                    qty=q.units,
                    unit_price_sold=q.unit_price,
                    region=q.region,
                )
                for q in matching[:n]
            ],
        )


# ---------------------------------------------------------------------------
# Live HTTP data
# ---------------------------------------------------------------------------
_M = TypeVar("_M", bound=BaseModel)


def _items(data: Any) -> list[Any]:
    """Accept either a bare JSON list or an ``{"items": [...]}`` envelope."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    raise DataSourceError("Expected a JSON list or an object with an 'items' list")


def _parse(model: type[_M], rows: list[Any], what: str) -> list[_M]:
    try:
        return [model.model_validate(r) for r in rows]
    except ValidationError as exc:
        raise DataSourceError(f"Malformed {what} payload: {exc}") from exc


class LiveDataSource:
    """Data source backed by the upstream JSON endpoints."""

    def __init__(
        self,
        quotes_url: str = config.QUOTES_URL,
        quotes_key: str = config.QUOTES_API_KEY,
        supplier_costs_url: str = config.SUPPLIER_COSTS_URL,
        supplier_costs_key: str = config.SUPPLIER_COSTS_API_KEY,
        inventory_url: str = config.INVENTORY_URL,
        inventory_key: str = config.INVENTORY_API_KEY,
        pricing_history_url: str = config.PRICING_HISTORY_URL,
        pricing_history_key: str = config.PRICING_HISTORY_API_KEY,
    ):
        self.quotes_url = quotes_url
        self.quotes_key = quotes_key
        self.supplier_costs_url = supplier_costs_url
        self.supplier_costs_key = supplier_costs_key
        self.inventory_url = inventory_url
        self.inventory_key = inventory_key
        self.pricing_history_url = pricing_history_url
        self.pricing_history_key = pricing_history_key

    def fetch_quotes(
        self, start: str | None = None, end: str | None = None
    ) -> list[Quote]:
        params = {k: v for k, v in (("start", start), ("end", end)) if v}
        data = fetch_json(
            self.quotes_url,
            self.quotes_key,
            params=params or None,
            cache_key=f"quotes:{start}:{end}",
        )
        quotes = _parse(Quote, _items(data), "quotes")
        logger.info("Fetched %d quotes", len(quotes))
        return quotes

    def fetch_supplier_costs(self, product_id: str | None = None) -> list[SupplierCost]:
        data = fetch_json(
            self.supplier_costs_url,
            self.supplier_costs_key,
            params={"productId": product_id} if product_id else None,
            cache_key=f"supplier_costs:{product_id}",
        )
        costs = _parse(SupplierCost, _items(data), "supplier costs")
        logger.info("Fetched %d supplier cost records", len(costs))
        return costs

    def fetch_inventory(self) -> list[InventoryBatch]:
        data = fetch_json(self.inventory_url, self.inventory_key, cache_key="inventory")
        return _parse(InventoryBatch, _items(data), "inventory")

    def fetch_customer_last_prices(
        self, customer: str, product_id: str, n: int = 3
    ) -> CustomerLastPrices:
        data = fetch_json(
            self.pricing_history_url,
            self.pricing_history_key,
            params={"customer": customer, "productId": product_id, "n": n},
            cache_key=f"pricing_history:{customer}:{product_id}:{n}",
        )
        try:
            if isinstance(data, list):
                return CustomerLastPrices(
                    customer=customer,
                    product_id=product_id,
                    last3=[PriceHistoryEntry.model_validate(r) for r in data[:n]],
                )
            return CustomerLastPrices.model_validate(data)
        except ValidationError as exc:
            raise DataSourceError(f"Malformed pricing history payload: {exc}") from exc


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------
def get_data_source(kind: str | None = None) -> DataSource:
    """Return the data source selected by *kind* or the ``DATA_SOURCE`` setting."""
    kind = (kind or config.DATA_SOURCE).lower()
    if kind == "fixture":
        logger.info("Using fixture data source")
        return FixtureDataSource()
    if kind == "live":
        logger.info("Using live data source")
        return LiveDataSource()
    raise ValueError(f"Unknown data source '{kind}'. Expected 'fixture' or 'live'")
