"""Timing helpers and the process-wide dashboard metrics tracker."""
import time
import logging
import threading
import functools
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("people-analytics-perf")


def timed(func: Callable) -> Callable:
    """
    Log the wall time of a synchronous call at DEBUG.

    Usage::

        @timed
        def score_batch(...):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.debug(
                f"{func.__qualname__} took {duration_ms} ms",
                extra={"duration_ms": duration_ms},
            )
    return wrapper


def timed_async(func: Callable) -> Callable:
    """Async counterpart of :func:`timed`."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.debug(
                f"{func.__qualname__} took {duration_ms} ms",
                extra={"duration_ms": duration_ms},
            )
    return wrapper


class PerformanceTracker:
    """
    Thread-safe in-memory tracker for dashboard metrics.

    Tracks:
    - Dashboards generated and their average duration
    - Per-section durations and the slowest section seen
    - Error count broken down by section name (failures and timeouts)
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._dashboards_generated: int = 0
        self._total_dashboard_duration_ms: float = 0.0
        self._section_durations: Dict[str, List[float]] = {}
        self._error_counts: Dict[str, int] = {}
        self._slowest_section: Optional[str] = None
        self._slowest_section_ms: float = 0.0

    # ------------------------------------------------------------------
    # Write API
    # ------------------------------------------------------------------

    def record_dashboard_complete(self, duration_ms: float) -> None:
        """Call once per dashboard, degraded or not."""
        with self._lock:
            self._dashboards_generated += 1
            self._total_dashboard_duration_ms += duration_ms

    def record_section_duration(self, section: str, duration_ms: float) -> None:
        with self._lock:
            self._section_durations.setdefault(section, []).append(duration_ms)
            if duration_ms > self._slowest_section_ms:
                self._slowest_section_ms = duration_ms
                self._slowest_section = section

    def record_section_error(self, section: str) -> None:
        with self._lock:
            self._error_counts[section] = self._error_counts.get(section, 0) + 1

    # ------------------------------------------------------------------
    # Read API
    # ------------------------------------------------------------------

    def get_metrics(self) -> Dict[str, Any]:
        """
        Snapshot of all collected metrics.

        Returns
        -------
        dict with keys:
            dashboards_generated       : int
            avg_dashboard_duration_ms  : float  (0 if none generated)
            slowest_section            : str | None
            slowest_section_ms         : float
            error_count                : int   (total across all sections)
            error_count_by_section     : dict  {section: count}
            section_avg_durations_ms   : dict  {section: avg_ms}
        """
        with self._lock:
            avg = (
                round(self._total_dashboard_duration_ms / self._dashboards_generated, 2)
                if self._dashboards_generated > 0
                else 0.0
            )
            section_avgs = {
                name: round(sum(durations) / len(durations), 2)
                for name, durations in self._section_durations.items()
                if durations
            }
            return {
                "dashboards_generated": self._dashboards_generated,
                "avg_dashboard_duration_ms": avg,
                "slowest_section": self._slowest_section,
                "slowest_section_ms": round(self._slowest_section_ms, 2),
                "error_count": sum(self._error_counts.values()),
                "error_count_by_section": dict(self._error_counts),
                "section_avg_durations_ms": section_avgs,
            }

    def reset(self) -> None:
        with self._lock:
            self._dashboards_generated = 0
            self._total_dashboard_duration_ms = 0.0
            self._section_durations.clear()
            self._error_counts.clear()
            self._slowest_section = None
            self._slowest_section_ms = 0.0


# Process-wide instance used when no tracker is injected
tracker = PerformanceTracker()
