"""
Weekly margin-leak job and its minute-level trigger.

The trigger checks US Eastern civil time once per interval and runs the job
when the clock reads Monday 08:30, at most once per Eastern calendar day.
It keeps no state across restarts and does not catch up on missed minutes:
if the process is not ticking during 08:30, that week's run is skipped.

In deployments without a long-lived process, run ``powerhouse
run-margin-leak`` from the platform's cron instead.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any

from powerhouse.models import MarginLeakReport
from powerhouse.services.alerts import AlertStore
from powerhouse.services.data_sources import DataSource
from powerhouse.services.margin_leak import detect_margin_leaks
from powerhouse.services.snapshot import build_snapshot
from powerhouse.utils.civil_time import day_key, to_report_zone, utc_now

logger = logging.getLogger(__name__)

_RUN_WEEKDAY = 0  # Monday
_RUN_HOUR = 8
_RUN_MINUTE = 30


# ---------------------------------------------------------------------------
# The job
# ---------------------------------------------------------------------------
def run_margin_leak_job(
    source: DataSource,
    store: AlertStore,
    *,
    start: str | None = None,
    end: str | None = None,
    reference_time: datetime | None = None,
) -> MarginLeakReport:
    """Scan the current quotes for margin leaks and post the alert."""
    snapshot = build_snapshot(
        source, start=start, end=end, reference_time=reference_time
    )
    report = detect_margin_leaks(snapshot)
    store.push([report.alert])
    logger.info(
        "Margin-leak job finished at %s: %d flagged",
        report.generated_at_et,
        report.total_flagged,
    )
    return report


# ---------------------------------------------------------------------------
# The trigger
# ---------------------------------------------------------------------------
def is_run_minute(moment: datetime) -> bool:
    """True when *moment* falls in Monday 08:30 Eastern."""
    local = to_report_zone(moment)
    return (
        local.weekday() == _RUN_WEEKDAY
        and local.hour == _RUN_HOUR
        and local.minute == _RUN_MINUTE
    )


class MarginLeakScheduler:
    """Runs *job* on the weekly Monday 08:30 Eastern slot.

    The job also runs on demand through :meth:`run_now`.  Every execution,
    scheduled or not, happens in a worker thread while holding one mutex, so
    at most one run is in flight at a time.

    Parameters
    ----------
    job:
        Blocking callable; executed in a worker thread.
    interval_seconds:
        How often the clock is checked.
    clock:
        Returns the current time; replaceable in tests.
    """

    def __init__(
        self,
        job: Callable[[], Any],
        interval_seconds: float = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._job = job
        self._interval = interval_seconds
        self._clock = clock
        self._job_lock = threading.Lock()
        self._task: asyncio.Task[None] | None = None
        self.last_run_key: str | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def should_run(self, now: datetime) -> bool:
        return is_run_minute(now) and self.last_run_key != day_key(now)

    # Worker-thread bodies; both hold the job mutex
    def _run_exclusive(self) -> Any:
        with self._job_lock:
            return self._job()

    def _run_scheduled(self, key: str) -> bool:
        with self._job_lock:
            # Another tick may have finished this slot while we waited
            if self.last_run_key == key:
                return False
            self._job()
            self.last_run_key = key
            return True

    async def tick(self, now: datetime | None = None) -> bool:
        """Check the clock once; returns True if the job ran successfully."""
        now = now if now is not None else self._clock()
        if not self.should_run(now):
            return False
        key = day_key(now)
        logger.info("Running scheduled margin-leak job for %s", key)
        try:
            return await asyncio.to_thread(self._run_scheduled, key)
        except Exception:
            logger.exception("Scheduled margin-leak job failed")
            return False

    async def run_now(self) -> Any:
        """Run the job immediately and return its result.

        Waits for any run already in flight.  Exceptions from the job
        propagate to the caller.
        """
        logger.info("Running margin-leak job on demand")
        return await asyncio.to_thread(self._run_exclusive)

    async def _loop(self) -> None:
        while True:
            await self.tick()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        """Start checking the clock in a background task."""
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("Margin-leak scheduler started (every %ss)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Margin-leak scheduler stopped")
