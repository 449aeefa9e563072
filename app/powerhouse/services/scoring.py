"""
Margin and SourceScore arithmetic.

SourceScore ranks suppliers on three normalised components::

    SourceScore = 0.45 * MarginScore + 0.35 * SpeedScore + 0.20 * ReliabilityScore

Every component is expected in [0, 1]; callers clamp with :func:`clamp01`.
"""

from __future__ import annotations

# SourceScore weights; must sum to 1.0
MARGIN_WEIGHT = 0.45
SPEED_WEIGHT = 0.35
RELIABILITY_WEIGHT = 0.20

# Lead times beyond this many days take a speed penalty
SLOW_LEAD_DAYS = 7
SLOW_LEAD_PENALTY = 0.85


def margin_pct(unit_price: float, landed_cost: float) -> float:
    """Return ``(price - cost) / price``, or 0 when the price is not positive."""
    if unit_price <= 0:
        return 0.0
    return (unit_price - landed_cost) / unit_price


def landed_cost(unit_cost: float, shipping_est: float, duties_est: float) -> float:
    return unit_cost + shipping_est + duties_est


def normalize_speed(lead_days: float | None) -> float:
    """SpeedScore = 1 / lead time, with a penalty above one week.

    A missing or non-positive lead time counts as the best case (1.0).
    """
    if not lead_days or lead_days <= 0:
        return 1.0
    score = 1.0 / lead_days
    if lead_days > SLOW_LEAD_DAYS:
        return score * SLOW_LEAD_PENALTY
    return score


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def source_score(
    margin_score: float,
    speed_score: float,
    reliability_score: float,
) -> float:
    """Weighted composite of the three supplier score components."""
    return (
        MARGIN_WEIGHT * margin_score
        + SPEED_WEIGHT * speed_score
        + RELIABILITY_WEIGHT * reliability_score
    )
