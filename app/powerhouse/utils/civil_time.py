"""
Civil-time helpers for the report time zone.

Timestamps are converted with an explicit IANA zone so results do not depend
on the host's local time zone.  Naive datetimes are treated as UTC.
"""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from powerhouse.utils.config import REPORT_TIMEZONE

REPORT_ZONE = ZoneInfo(REPORT_TIMEZONE)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_report_zone(moment: datetime) -> datetime:
    """Convert *moment* to civil time in the report zone."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(REPORT_ZONE)


def format_report_minute(moment: datetime) -> str:
    """ISO-8601 report-zone timestamp truncated to the minute.

    The offset reflects daylight saving, e.g. ``2025-11-03T08:30:00-05:00``
    in winter and ``2025-06-02T08:30:00-04:00`` in summer.
    """
    local = to_report_zone(moment).replace(second=0, microsecond=0)
    return local.isoformat()


def day_key(moment: datetime) -> str:
    """Report-zone calendar date as ``YYYY-MM-DD``."""
    return to_report_zone(moment).strftime("%Y-%m-%d")
