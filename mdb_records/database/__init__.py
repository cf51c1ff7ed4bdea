"""
Database connection layer.

Builds the database handle repositories are constructed with.
"""

from .connection import (
    close_shared_client,
    get_database,
    get_shared_mongo_client,
    verify_client,
)

__all__ = [
    "get_shared_mongo_client",
    "get_database",
    "verify_client",
    "close_shared_client",
]
