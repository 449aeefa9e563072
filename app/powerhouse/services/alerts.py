"""
In-memory alert buffer for the dashboard's alert panel.

Holds the most recent alerts (newest first, bounded capacity) and notifies
subscribers whenever the contents change.  One store is created per
application and shared through ``app.state``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable

from powerhouse.models import Alert

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100

Listener = Callable[[], None]


class AlertStore:
    """Thread-safe bounded alert buffer with change subscriptions."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._lock = threading.Lock()
        self._alerts: list[Alert] = []
        self._listeners: list[Listener] = []

    @property
    def capacity(self) -> int:
        return self._capacity

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners = [fn for fn in self._listeners if fn is not listener]

    def get(self, limit: int | None = None) -> list[Alert]:
        """Return a copy of the alerts, newest first."""
        with self._lock:
            if limit is None:
                return list(self._alerts)
            return self._alerts[:limit]

    def push(self, items: Iterable[Alert]) -> None:
        """Prepend *items* (in order) and drop anything beyond capacity."""
        new = list(items)
        with self._lock:
            self._alerts = (new + self._alerts)[: self._capacity]
            count = len(self._alerts)
        logger.info("Pushed %d alert(s); %d stored", len(new), count)
        self._notify()

    def clear(self) -> None:
        with self._lock:
            self._alerts = []
        self._notify()

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)

    def _notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Alert listener %r failed", listener)
