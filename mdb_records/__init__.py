"""
MDB_RECORDS - typed records over MongoDB

Generic repositories that map typed application records to documents,
with uniform create/read/update/delete/query operations and lazily
decoded cursors.
"""

# Configuration
from .config import StoreConfig
# Database layer
from .database import close_shared_client, get_database
# Errors
from .exceptions import (ConfigurationError, DecodeError, MongoRecordsError,
                         SerializationError, StoreError)
# Repositories
from .repositories import (Codec, DeleteSummary, GenericRepository,
                           InsertSummary, PydanticCodec, Record, Repository,
                           TypedCursor)

__version__ = "0.1.0"

__all__ = [
    # Repositories
    "Record",
    "Repository",
    "GenericRepository",
    "TypedCursor",
    "Codec",
    "PydanticCodec",
    "InsertSummary",
    "DeleteSummary",
    # Errors
    "MongoRecordsError",
    "SerializationError",
    "DecodeError",
    "StoreError",
    "ConfigurationError",
    # Configuration / database
    "StoreConfig",
    "get_database",
    "close_shared_client",
]
