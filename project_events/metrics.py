"""
In-memory event metrics.

MetricsCollector keeps counters keyed by ``<event_kind>_<outcome>``, e.g.
``project_created_attempt`` or ``project_updated_error``. MetricsScheduler runs
the periodic summary log and the periodic reset as cancellable background
tasks owned by the publisher.
"""

import asyncio
import logging
import threading
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Thread-safe counter map.

    ``reset()`` swaps in a fresh map instead of clearing in place; increments
    recorded after the swap land in the new map and are never lost.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, float] = {}

    def record(self, key: str, delta: float = 1) -> None:
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + delta

    def get(self, key: str) -> float:
        with self._lock:
            return self._counters.get(key, 0)

    def snapshot(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._counters)

    def reset(self) -> None:
        with self._lock:
            self._counters = {}
        logger.debug("Event metrics reset")

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)


class MetricsScheduler:
    """
    Background summary logging and reset for a MetricsCollector.

    Args:
        collector: Metrics to summarize and reset
        summary_interval: Seconds between summary log lines
        reset_interval: Seconds between resets
        context: Optional callable returning extra fields for the summary
            (uptime, breaker state, ...)
    """

    def __init__(
        self,
        collector: MetricsCollector,
        summary_interval: float = 3600.0,
        reset_interval: float = 6 * 3600.0,
        context: Optional[Callable[[], Dict[str, object]]] = None,
    ):
        self.collector = collector
        self.summary_interval = summary_interval
        self.reset_interval = reset_interval
        self._context = context
        self._tasks: list[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Start both loops on the running event loop. Idempotent."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(
                self._every(self.summary_interval, self.log_summary),
                name="event-metrics-summary",
            ),
            asyncio.create_task(
                self._every(self.reset_interval, self.collector.reset),
                name="event-metrics-reset",
            ),
        ]

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass

    def log_summary(self) -> None:
        """Log a snapshot of the counters without mutating them."""
        metrics = self.collector.snapshot()
        if not metrics:
            return
        if self._context:
            metrics.update(self._context())
        logger.info(f"Events metrics summary: {metrics}")

    async def _every(self, interval: float, action: Callable[[], None]) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                action()
            except Exception as e:
                logger.error(f"Periodic metrics task failed: {e}")
