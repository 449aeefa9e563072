"""
Tests for margin-leak detection and the Eastern-time report stamp.
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "app"))

from powerhouse.models import Quote  # noqa: E402
from powerhouse.services.margin_leak import (  # noqa: E402
    detect_margin_leaks,
    find_margin_leaks,
)
from powerhouse.services.snapshot import compose_snapshot  # noqa: E402
from powerhouse.utils.civil_time import day_key, format_report_minute  # noqa: E402


def _quote(qid: str, price: float, cost: float) -> Quote:
    return Quote(
        id=qid,
        date="2025-10-27",
        customer="CVS",
        product_id="P",
        product_name="Product",
        units=1,
        unit_price=price,
        landed_cost=cost,
        status="sent",
    )


def _snapshot(quotes, when=datetime(2025, 11, 3, 13, 30, 45, tzinfo=timezone.utc)):
    return compose_snapshot(quotes, [], [], when)


class TestFindMarginLeaks:
    """Tests for the leak filter."""

    def test_ten_percent_is_flagged(self):
        [row] = find_margin_leaks([_quote("Q-1", 100, 90)])
        assert row.quote_id == "Q-1"
        assert row.margin_pct == pytest.approx(0.10)

    def test_healthy_margin_not_flagged(self):
        assert find_margin_leaks([_quote("Q-1", 120, 80)]) == []

    def test_threshold_is_exclusive(self):
        assert find_margin_leaks([_quote("Q-1", 100, 75)]) == []

    def test_sorted_worst_first(self):
        quotes = [
            _quote("Q-1", 100, 90),    # 10%
            _quote("Q-2", 100, 120),   # -20%
            _quote("Q-3", 100, 60),    # 40%, healthy
            _quote("Q-4", 100, 80),    # 20%
            _quote("Q-5", 0, 10),      # price 0 -> margin 0
        ]
        rows = find_margin_leaks(quotes)
        assert [r.quote_id for r in rows] == ["Q-2", "Q-5", "Q-1", "Q-4"]
        margins = [r.margin_pct for r in rows]
        assert margins == sorted(margins)
        assert all(m < 0.25 for m in margins)


class TestDetectMarginLeaks:
    """Tests for the report wrapper."""

    def test_report_with_leaks(self):
        report = detect_margin_leaks(
            _snapshot([_quote("Q-1", 100, 90), _quote("Q-2", 120, 80)])
        )
        assert report.total_flagged == 1
        assert report.alert.type == "margin-leak"
        assert report.alert.title == "Margin Leak Snapshot"
        assert report.alert.message == "Detected 1 quotes below 25% margin."
        assert report.alert.rows == report.rows

    def test_report_without_leaks(self):
        report = detect_margin_leaks(_snapshot([_quote("Q-1", 120, 80)]))
        assert report.total_flagged == 0
        assert report.rows == ()
        assert report.alert.message == "No margin leaks detected."

    def test_timestamp_in_eastern_standard_time(self):
        report = detect_margin_leaks(_snapshot([]))
        assert report.generated_at_et == "2025-11-03T08:30:00-05:00"

    def test_timestamp_in_eastern_daylight_time(self):
        summer = datetime(2025, 6, 2, 12, 30, tzinfo=timezone.utc)
        report = detect_margin_leaks(_snapshot([], when=summer))
        assert report.generated_at_et == "2025-06-02T08:30:00-04:00"

    def test_serialized_field_name(self):
        report = detect_margin_leaks(_snapshot([]))
        assert "generatedAtET" in report.model_dump(by_alias=True)


class TestCivilTime:
    def test_naive_datetimes_are_utc(self):
        assert format_report_minute(datetime(2025, 11, 3, 13, 30)) == "2025-11-03T08:30:00-05:00"

    def test_day_key_uses_eastern_date(self):
        # 02:00 UTC on Nov 4 is still Nov 3 in New York
        assert day_key(datetime(2025, 11, 4, 2, 0, tzinfo=timezone.utc)) == "2025-11-03"
