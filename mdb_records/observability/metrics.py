"""
Operation metrics for MDB_RECORDS.

Every repository call is timed into a series identified by the operation
name plus its tags (normally the collection). Series live in a bounded
LRU, so a process touching many collections keeps a fixed footprint.

Repositories expose their own totals through
``GenericRepository.operation_stats()``.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..constants import MAX_METRICS

logger = logging.getLogger(__name__)

# (operation name, sorted (tag, value) pairs)
SeriesKey = tuple[str, tuple[tuple[str, str], ...]]


@dataclass
class OperationMetrics:
    """Running timing and error counts for one series."""

    operation_name: str
    count: int = 0
    total_duration_ms: float = 0.0
    min_duration_ms: float = float("inf")
    max_duration_ms: float = 0.0
    error_count: int = 0
    last_execution: datetime | None = None

    @property
    def avg_duration_ms(self) -> float:
        return self.total_duration_ms / self.count if self.count else 0.0

    @property
    def error_rate(self) -> float:
        """Failed executions as a percentage."""
        return self.error_count / self.count * 100 if self.count else 0.0

    def record(self, duration_ms: float, success: bool = True) -> None:
        self.count += 1
        self.total_duration_ms += duration_ms
        self.min_duration_ms = min(self.min_duration_ms, duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        if not success:
            self.error_count += 1
        self.last_execution = datetime.now()

    def merge(self, other: "OperationMetrics") -> None:
        """Fold another series' counters into this one."""
        self.count += other.count
        self.total_duration_ms += other.total_duration_ms
        self.min_duration_ms = min(self.min_duration_ms, other.min_duration_ms)
        self.max_duration_ms = max(self.max_duration_ms, other.max_duration_ms)
        self.error_count += other.error_count
        if other.last_execution and (
            self.last_execution is None or other.last_execution > self.last_execution
        ):
            self.last_execution = other.last_execution

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "avg_duration_ms": round(self.avg_duration_ms, 2),
            "min_duration_ms": round(self.min_duration_ms, 2) if self.count else 0.0,
            "max_duration_ms": round(self.max_duration_ms, 2),
            "error_count": self.error_count,
            "error_rate_percent": round(self.error_rate, 2),
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
        }


class MetricsCollector:
    """
    Thread-safe store of operation series.

    Recording into a series marks it most recently used; when the store is
    full the least recently used series is evicted.
    """

    def __init__(self, max_series: int = MAX_METRICS):
        self._series: OrderedDict[SeriesKey, OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_series = max_series

    def __len__(self) -> int:
        with self._lock:
            return len(self._series)

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True, **tags: Any
    ) -> None:
        """
        Record one execution.

        Args:
            operation_name: Name of the operation (e.g., "repository.find_one")
            duration_ms: Duration in milliseconds
            success: Whether the operation succeeded
            **tags: Series tags (collection, ...)
        """
        key: SeriesKey = (
            operation_name,
            tuple(sorted((name, str(value)) for name, value in tags.items())),
        )

        with self._lock:
            series = self._series.get(key)
            if series is None:
                if len(self._series) >= self._max_series:
                    evicted, _ = self._series.popitem(last=False)
                    logger.debug(f"Evicted metric series {evicted[0]} {dict(evicted[1])}")
                series = self._series[key] = OperationMetrics(operation_name=operation_name)
            else:
                self._series.move_to_end(key)
            series.record(duration_ms, success)

    def totals(self, **tags: Any) -> dict[str, dict[str, Any]]:
        """
        Per-operation totals over every series carrying the given tags.

        ``totals(collection="species")`` aggregates one collection;
        ``totals()`` aggregates everything.
        """
        wanted = {name: str(value) for name, value in tags.items()}
        aggregated: dict[str, OperationMetrics] = {}

        with self._lock:
            for (operation_name, series_tags), series in self._series.items():
                tag_map = dict(series_tags)
                if any(tag_map.get(name) != value for name, value in wanted.items()):
                    continue
                total = aggregated.setdefault(
                    operation_name, OperationMetrics(operation_name=operation_name)
                )
                total.merge(series)

        return {name: total.to_dict() for name, total in aggregated.items()}


_metrics_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Get or create the process-wide collector repositories record into."""
    global _metrics_collector
    if _metrics_collector is None:
        with _collector_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector
