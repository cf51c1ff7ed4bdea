"""
Custom exceptions for MDB_RECORDS.

Every failure a repository or cursor can report is one of these types.
They all derive from RuntimeError through MongoRecordsError, so callers
can catch the whole family with a single except clause.
"""

from typing import Any, Dict, Optional


class MongoRecordsError(RuntimeError):
    """
    Base exception for MDB_RECORDS errors.

    Attributes:
        message: Error message
        context: Optional dictionary with additional context (collection_name,
                 record_type, operation, etc.)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional dictionary with additional context information
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context if available."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class SerializationError(MongoRecordsError):
    """
    Raised when a record cannot be converted to a document.

    Always raised before any request reaches the store.

    Attributes:
        message: Error message
        record_type: Name of the record class being encoded
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if record_type:
            context["record_type"] = record_type
        super().__init__(message, context=context)
        self.record_type = record_type


class DecodeError(MongoRecordsError):
    """
    Raised when a stored document cannot be converted back to its record type.

    Point lookups raise it directly; cursors raise it once and then stop.

    Attributes:
        message: Error message
        record_type: Name of the expected record class
        collection_name: Collection the document came from
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        collection_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if record_type:
            context["record_type"] = record_type
        if collection_name:
            context["collection_name"] = collection_name
        super().__init__(message, context=context)
        self.record_type = record_type
        self.collection_name = collection_name


class StoreError(MongoRecordsError):
    """
    Raised when the driver reports a transport, protocol or server failure.

    The driver exception is preserved as ``__cause__``.

    Attributes:
        message: Error message
        operation: Repository operation that failed (e.g. "upsert")
        collection_name: Collection the operation targeted
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        collection_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if operation:
            context["operation"] = operation
        if collection_name:
            context["collection_name"] = collection_name
        super().__init__(message, context=context)
        self.operation = operation
        self.collection_name = collection_name


class ConfigurationError(MongoRecordsError):
    """
    Raised when configuration is invalid or missing.

    Attributes:
        message: Error message
        config_key: Configuration key that caused the error (if available)
        config_value: Configuration value that caused the error (if available)
        context: Additional context information
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        context = context or {}
        if config_key:
            context["config_key"] = config_key
        if config_value is not None:
            context["config_value"] = config_value
        super().__init__(message, context=context)
        self.config_key = config_key
        self.config_value = config_value
