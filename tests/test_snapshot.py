"""
Tests for snapshot composition and inventory risk, using the fixture data.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from powerhouse.models import DashboardSnapshot, InventoryBatch  # noqa: E402
from powerhouse.services.data_sources import FixtureDataSource  # noqa: E402
from powerhouse.services.inventory import assess_batch, assess_inventory  # noqa: E402
from powerhouse.services.snapshot import build_snapshot, compose_snapshot  # noqa: E402

REFERENCE_TIME = datetime(2025, 11, 3, 13, 30, tzinfo=timezone.utc)


@pytest.fixture()
def source():
    return FixtureDataSource()


@pytest.fixture()
def snapshot(source):
    return build_snapshot(source, reference_time=REFERENCE_TIME)


def _batch(on_hand: float, forecast: float) -> InventoryBatch:
    return InventoryBatch(
        product_id="TRZ-30",
        product_name="Tirzepatide 30mg Kit",
        on_hand_units=on_hand,
        velocity_bucket="B",
        forecast_14d=forecast,
    )


class TestInventoryRisk:
    """Tests for stockout risk and restock suggestions."""

    def test_stockout_risk(self):
        row = assess_batch(_batch(15, 22))
        assert row.stockout_risk is True
        assert row.restock_units == 29

    def test_covered_stock(self):
        row = assess_batch(_batch(60, 40))
        assert row.stockout_risk is False
        assert row.restock_units == 20

    def test_restock_never_negative(self):
        assert assess_batch(_batch(100, 10)).restock_units == 0

    def test_at_risk_only(self):
        rows = assess_inventory([_batch(60, 40), _batch(15, 22)], at_risk_only=True)
        assert len(rows) == 1
        assert rows[0].on_hand_units == 15


class TestComposeSnapshot:
    """Tests for the fixture-backed snapshot."""

    def test_reference_time_is_kept(self, snapshot):
        assert snapshot.reference_time == REFERENCE_TIME

    def test_kpis(self, snapshot):
        kpis = snapshot.kpis
        # 1200 + 620 + 3300 + 2700 + 3450 + 3150
        assert kpis.total_revenue == 14420
        # 800 + 440 + 2600 + 1950 + 2850 + 2700
        assert kpis.total_cost == 11340
        assert kpis.profit == 3080
        assert kpis.gross_margin_pct == pytest.approx(3080 / 14420)
        assert kpis.active_customers == 4
        assert kpis.active_products == 6

    def test_suppliers_ranked_for_every_costed_product(self, snapshot):
        rows = snapshot.supplier_rows_by_product
        assert set(rows) == {"TRZ-10", "TRZ-15", "GLOW-70", "MOTS-10", "TRZ-30"}
        assert [r.supplier_id for r in rows["TRZ-10"]] == ["SUP-US-01", "SUP-CN-02"]
        assert rows["TRZ-10"][0].reference_price == 120

    def test_inventory_risk(self, snapshot):
        at_risk = [r.product_id for r in snapshot.inventory_risk if r.stockout_risk]
        assert at_risk == ["TRZ-30"]

    def test_revenue_trend_sorted(self, snapshot):
        dates = [p.date for p in snapshot.revenue_trend]
        assert dates == sorted(dates)
        assert len(dates) == 5

    def test_snapshot_is_immutable(self, snapshot):
        with pytest.raises(ValidationError):
            snapshot.kpis = None

    def test_nested_collections_are_immutable(self, snapshot):
        with pytest.raises(AttributeError):
            snapshot.transactions.clear()
        with pytest.raises(TypeError):
            snapshot.supplier_rows_by_product["X"] = []
        with pytest.raises(AttributeError):
            snapshot.supplier_rows_by_product["TRZ-10"].append(None)
        assert len(snapshot.transactions) == 6
        assert "X" not in snapshot.supplier_rows_by_product

    def test_read_only_mapping_serializes(self, snapshot):
        data = snapshot.model_dump(by_alias=True)
        rows = data["supplierRowsByProduct"]
        assert isinstance(rows, dict)
        assert rows["TRZ-10"][0]["supplierId"] == "SUP-US-01"
        assert '"supplierRowsByProduct"' in snapshot.model_dump_json(by_alias=True)

    def test_round_trips_through_validation(self, snapshot):
        again = DashboardSnapshot.model_validate(snapshot.model_dump(by_alias=True))
        assert again == snapshot

    def test_compose_is_pure(self, source):
        args = (
            source.fetch_quotes(),
            source.fetch_supplier_costs(),
            source.fetch_inventory(),
            REFERENCE_TIME,
        )
        assert compose_snapshot(*args) == compose_snapshot(*args)

    def test_date_window(self, source):
        snap = build_snapshot(
            source, start="2025-10-27", end="2025-10-28", reference_time=REFERENCE_TIME
        )
        assert sorted(q.id for q in snap.transactions) == ["Q-1001", "Q-1002", "Q-1006"]
