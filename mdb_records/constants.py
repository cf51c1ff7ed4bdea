"""
Constants for MDB_RECORDS.

Shared constants used across the codebase to avoid magic numbers and
magic strings.
"""

from typing import Final

# ============================================================================
# DOCUMENT CONSTANTS
# ============================================================================

ID_FIELD: Final[str] = "_id"
"""Key under which every stored document keeps its identifier."""

# ============================================================================
# CONNECTION CONSTANTS
# ============================================================================

DEFAULT_MAX_POOL_SIZE: Final[int] = 50
"""Default maximum MongoDB connection pool size."""

DEFAULT_MIN_POOL_SIZE: Final[int] = 10
"""Default minimum MongoDB connection pool size."""

DEFAULT_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 5000
"""Default server selection timeout in milliseconds."""

MIN_SERVER_SELECTION_TIMEOUT_MS: Final[int] = 1000
"""Lowest server selection timeout accepted by configuration validation."""

DEFAULT_MAX_IDLE_TIME_MS: Final[int] = 45000
"""Default maximum idle time before closing connections (milliseconds)."""

CLIENT_APP_NAME: Final[str] = "MDB_RECORDS"
"""Application name reported to the server by the shared client."""

# ============================================================================
# OBSERVABILITY CONSTANTS
# ============================================================================

METRICS_PREFIX: Final[str] = "repository"
"""Prefix for operation names recorded by repositories."""

MAX_METRICS: Final[int] = 10000
"""Maximum number of metric series kept before LRU eviction."""
