"""
Tests for the margin and SourceScore arithmetic.
"""

from __future__ import annotations

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from powerhouse.services.scoring import (  # noqa: E402
    MARGIN_WEIGHT,
    RELIABILITY_WEIGHT,
    SPEED_WEIGHT,
    clamp01,
    landed_cost,
    margin_pct,
    normalize_speed,
    source_score,
)


class TestMarginPct:
    """Tests for margin_pct."""

    @pytest.mark.parametrize("price", [0, -1, -250.5])
    def test_non_positive_price_is_zero(self, price):
        assert margin_pct(price, 80) == 0

    def test_regular_margin(self):
        assert margin_pct(120, 80) == pytest.approx(1 / 3)

    def test_ten_percent(self):
        assert margin_pct(100, 90) == pytest.approx(0.10)

    def test_loss_is_negative(self):
        assert margin_pct(100, 130) == pytest.approx(-0.30)


class TestLandedCost:
    def test_sums_components(self):
        assert landed_cost(70, 6, 4) == 80


class TestNormalizeSpeed:
    """Tests for normalize_speed."""

    @pytest.mark.parametrize("lead", [None, 0, -3])
    def test_missing_or_non_positive_is_best_case(self, lead):
        assert normalize_speed(lead) == 1

    def test_inverse_lead_time(self):
        assert normalize_speed(4) == pytest.approx(0.25)

    def test_seven_days_has_no_penalty(self):
        assert normalize_speed(7) == pytest.approx(1 / 7)

    @pytest.mark.parametrize("lead", [8, 10, 30])
    def test_slow_supplier_penalty(self, lead):
        assert normalize_speed(lead) == pytest.approx((1 / lead) * 0.85)


class TestClamp01:
    @pytest.mark.parametrize(
        "value, expected",
        [(-5.0, 0.0), (0.0, 0.0), (0.42, 0.42), (1.0, 1.0), (1.9, 1.0), (float("inf"), 1.0)],
    )
    def test_bounds(self, value, expected):
        assert clamp01(value) == expected


class TestSourceScore:
    """Tests for the weighted composite."""

    def test_weights_sum_to_one(self):
        assert MARGIN_WEIGHT + SPEED_WEIGHT + RELIABILITY_WEIGHT == pytest.approx(1.0)

    def test_perfect_components_score_exactly_one(self):
        assert source_score(1, 1, 1) == 1.0

    def test_zero_components(self):
        assert source_score(0, 0, 0) == 0

    def test_weighting(self):
        assert source_score(1, 0, 0) == pytest.approx(0.45)
        assert source_score(0, 1, 0) == pytest.approx(0.35)
        assert source_score(0, 0, 1) == pytest.approx(0.20)
