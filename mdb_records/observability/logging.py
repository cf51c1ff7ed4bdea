"""
Logging utilities for MDB_RECORDS.

Records emitted by a repository carry the collection and record type they
concern, so one collection's traffic can be filtered out of a shared log.
A correlation ID set for the current task is attached as well, grouping
the repository calls made on behalf of one request.

Usage:
    from mdb_records.observability import correlation_scope

    with correlation_scope(request.headers.get("X-Request-ID")):
        await species.upsert(heron)
"""

import contextvars
import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..exceptions import StoreError

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def get_correlation_id() -> str | None:
    """Get the correlation ID of the current task, if any."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Set the correlation ID for the current task.

    Args:
        correlation_id: ID to use (a UUID4 is generated if None)

    Returns:
        The correlation ID that was set
    """
    correlation_id = correlation_id or str(uuid.uuid4())
    _correlation_id.set(correlation_id)
    return correlation_id


def clear_correlation_id() -> None:
    _correlation_id.set(None)


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """
    Run a block under a correlation ID, restoring the previous one on exit.

    Yields:
        The correlation ID in effect inside the block
    """
    token = _correlation_id.set(correlation_id or str(uuid.uuid4()))
    try:
        yield _correlation_id.get()
    finally:
        _correlation_id.reset(token)


class RepositoryLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that stamps records with repository context.

    The bound context (``collection_name``, ``record_type``) and the current
    correlation ID are added to every record. Keys passed through ``extra``
    at the call site take precedence.
    """

    def __init__(
        self,
        logger: logging.Logger,
        collection_name: str | None = None,
        record_type: str | None = None,
    ):
        context: dict[str, Any] = {}
        if collection_name:
            context["collection_name"] = collection_name
        if record_type:
            context["record_type"] = record_type
        super().__init__(logger, context)

    @property
    def context(self) -> dict[str, Any]:
        return dict(self.extra)

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = dict(self.extra)
        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(
    name: str,
    *,
    collection_name: str | None = None,
    record_type: str | None = None,
) -> RepositoryLoggerAdapter:
    """
    Get a logger bound to a repository context.

    Args:
        name: Logger name (typically __name__)
        collection_name: Collection the logger reports on
        record_type: Name of the record class served

    Returns:
        RepositoryLoggerAdapter instance
    """
    return RepositoryLoggerAdapter(
        logging.getLogger(name),
        collection_name=collection_name,
        record_type=record_type,
    )


def log_operation(
    logger: logging.Logger | logging.LoggerAdapter,
    operation: str,
    *,
    duration_ms: float | None = None,
    error: BaseException | None = None,
    **context: Any,
) -> None:
    """
    Log the outcome of one repository operation.

    Successful operations are logged at DEBUG. A StoreError is logged at
    ERROR with its traceback, since it wraps a driver failure. Any other
    failure (bad record, undecodable document, cancellation) is logged at
    WARNING.

    Args:
        logger: Logger or adapter to emit through
        operation: Operation name (e.g. "upsert")
        duration_ms: Operation duration in milliseconds
        error: Exception that ended the operation, if it failed
        **context: Additional structured fields
    """
    success = error is None
    fields: dict[str, Any] = {"operation": operation, "success": success, **context}
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 2)

    message = f"Operation: {operation}" if success else f"Operation failed: {operation}"
    if duration_ms is not None:
        message += f" (duration: {duration_ms:.2f}ms)"

    if success:
        logger.debug(message, extra=fields)
        return

    fields["error_type"] = type(error).__name__
    message += f" [{type(error).__name__}] {error}".rstrip()
    if isinstance(error, StoreError):
        logger.error(message, extra=fields, exc_info=error)
    else:
        logger.warning(message, extra=fields)
