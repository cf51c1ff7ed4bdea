"""
Observability components.

Provides structured logging and operation metrics for repositories.
"""

from .logging import (
    RepositoryLoggerAdapter,
    clear_correlation_id,
    correlation_scope,
    get_correlation_id,
    get_logger,
    log_operation,
    set_correlation_id,
)
from .metrics import MetricsCollector, OperationMetrics, get_metrics_collector

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "correlation_scope",
    "RepositoryLoggerAdapter",
    "get_logger",
    "log_operation",
]
