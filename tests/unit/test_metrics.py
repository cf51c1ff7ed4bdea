"""
Unit tests for MetricsCollector.

Tests metrics collection functionality including:
- Thread-safety under concurrent access
- Bounded storage with LRU eviction
- Per-operation totals filtered by tag
"""

import threading

from mdb_records.observability import metrics as metrics_module
from mdb_records.observability.metrics import (MetricsCollector,
                                               OperationMetrics,
                                               get_metrics_collector)


class TestMetricsCollectorThreadSafety:
    """Test thread-safety of metrics collection."""

    def test_concurrent_record_operation(self):
        """Concurrent record_operation calls lose no samples."""
        collector = MetricsCollector()
        num_threads = 10
        operations_per_thread = 100
        barrier = threading.Barrier(num_threads)

        def record_operations(thread_id: int):
            barrier.wait()
            for i in range(operations_per_thread):
                collector.record_operation(
                    "repository.find_one",
                    duration_ms=1.0 + i,
                    success=True,
                    collection=f"c{thread_id}",
                )

        threads = [
            threading.Thread(target=record_operations, args=(i,)) for i in range(num_threads)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        totals = collector.totals()
        assert totals["repository.find_one"]["count"] == num_threads * operations_per_thread
        assert len(collector) == num_threads


class TestMetricsCollectorBoundedStorage:
    """Test bounded storage and LRU eviction."""

    def test_max_series_limit(self):
        collector = MetricsCollector(max_series=5)

        for i in range(8):
            collector.record_operation("repository.find", duration_ms=10.0, collection=f"c{i}")

        assert len(collector) == 5

    def test_least_recently_recorded_is_evicted(self):
        collector = MetricsCollector(max_series=3)
        for name in ("a", "b", "c"):
            collector.record_operation("repository.find", duration_ms=10.0, collection=name)

        # Recording into "a" again leaves "b" as the oldest series
        collector.record_operation("repository.find", duration_ms=10.0, collection="a")
        collector.record_operation("repository.find", duration_ms=10.0, collection="d")

        assert collector.totals(collection="b") == {}
        assert collector.totals(collection="a")["repository.find"]["count"] == 2
        assert collector.totals(collection="d")["repository.find"]["count"] == 1

    def test_no_eviction_on_update(self):
        collector = MetricsCollector(max_series=2)
        collector.record_operation("repository.upsert", duration_ms=10.0)
        collector.record_operation("repository.find", duration_ms=10.0)

        collector.record_operation("repository.upsert", duration_ms=20.0)

        assert len(collector) == 2
        assert collector.totals()["repository.upsert"]["count"] == 2


class TestTotals:
    """Test per-operation aggregation."""

    def test_aggregates_across_tags(self):
        collector = MetricsCollector()
        collector.record_operation("repository.find_one", duration_ms=10.0, collection="a")
        collector.record_operation("repository.find_one", duration_ms=30.0, collection="b")
        collector.record_operation(
            "repository.find_one", duration_ms=20.0, success=False, collection="c"
        )

        totals = collector.totals()["repository.find_one"]
        assert totals["count"] == 3
        assert totals["avg_duration_ms"] == 20.0
        assert totals["min_duration_ms"] == 10.0
        assert totals["max_duration_ms"] == 30.0
        assert totals["error_count"] == 1

    def test_filter_by_tag(self):
        collector = MetricsCollector()
        collector.record_operation("repository.upsert", duration_ms=5.0, collection="species")
        collector.record_operation("repository.upsert", duration_ms=7.0, collection="habitats")
        collector.record_operation("repository.find", duration_ms=1.0, collection="species")

        totals = collector.totals(collection="species")

        assert set(totals) == {"repository.upsert", "repository.find"}
        assert totals["repository.upsert"]["count"] == 1

    def test_tag_values_compared_as_strings(self):
        collector = MetricsCollector()
        collector.record_operation("repository.find", duration_ms=1.0, shard=3)

        assert collector.totals(shard="3")["repository.find"]["count"] == 1

    def test_empty(self):
        assert MetricsCollector().totals() == {}


class TestOperationMetrics:
    """Test a single series."""

    def test_error_rate(self):
        metric = OperationMetrics(operation_name="repository.delete_one")
        metric.record(5.0, success=True)
        metric.record(5.0, success=False)

        assert metric.error_rate == 50.0
        assert metric.to_dict()["error_rate_percent"] == 50.0

    def test_empty_series(self):
        data = OperationMetrics(operation_name="repository.find").to_dict()

        assert data["count"] == 0
        assert data["min_duration_ms"] == 0.0
        assert data["last_execution"] is None

    def test_merge(self):
        first = OperationMetrics(operation_name="repository.find")
        first.record(4.0)
        second = OperationMetrics(operation_name="repository.find")
        second.record(2.0, success=False)

        first.merge(second)

        assert first.count == 2
        assert first.min_duration_ms == 2.0
        assert first.error_count == 1
        assert first.last_execution == second.last_execution


class TestGlobalCollector:
    """Test the process-wide collector."""

    def test_singleton(self, monkeypatch):
        monkeypatch.setattr(metrics_module, "_metrics_collector", None)

        assert get_metrics_collector() is get_metrics_collector()
