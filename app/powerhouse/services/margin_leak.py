"""
Margin-leak detection.

A margin leak is a quote priced below the 25% minimum-margin policy.  The
scan lists every leaking quote worst first and packages the result as an
alert for the dashboard's alert panel.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from powerhouse.models import (
    Alert,
    DashboardSnapshot,
    MarginLeakReport,
    MarginLeakRow,
    Quote,
)
from powerhouse.services.scoring import margin_pct
from powerhouse.utils.civil_time import format_report_minute

logger = logging.getLogger(__name__)

MARGIN_LEAK_THRESHOLD = 0.25

ALERT_TYPE = "margin-leak"
ALERT_TITLE = "Margin Leak Snapshot"


def find_margin_leaks(transactions: Iterable[Quote]) -> list[MarginLeakRow]:
    """Return quotes below the margin threshold, lowest margin first."""
    rows = [
        MarginLeakRow(
            quote_id=q.id,
            product_name=q.product_name,
            customer=q.customer,
            unit_price=q.unit_price,
            landed_cost=q.landed_cost,
            margin_pct=margin_pct(q.unit_price, q.landed_cost),
        )
        for q in transactions
    ]
    leaks = [r for r in rows if r.margin_pct < MARGIN_LEAK_THRESHOLD]
    return sorted(leaks, key=lambda r: r.margin_pct)


def _summary_message(flagged: int) -> str:
    if flagged > 0:
        return f"Detected {flagged} quotes below {MARGIN_LEAK_THRESHOLD:.0%} margin."
    return "No margin leaks detected."


def detect_margin_leaks(snapshot: DashboardSnapshot) -> MarginLeakReport:
    """Build the margin-leak report for a snapshot.

    The report is stamped with the snapshot's reference time in US Eastern
    civil time.
    """
    rows = find_margin_leaks(snapshot.transactions)
    logger.info(
        "Margin-leak scan: %d of %d quotes below threshold",
        len(rows),
        len(snapshot.transactions),
    )

    return MarginLeakReport(
        generated_at_et=format_report_minute(snapshot.reference_time),
        total_flagged=len(rows),
        rows=rows,
        alert=Alert(
            type=ALERT_TYPE,
            title=ALERT_TITLE,
            message=_summary_message(len(rows)),
            rows=rows,
            created_at=snapshot.reference_time,
        ),
    )
