"""
Shared MongoDB Client

Provides a process-wide Motor client so that every repository built from
the same configuration shares one driver connection pool. Pool sizing,
retries and server selection remain the driver's responsibility.

Usage:
    from mdb_records.config import StoreConfig
    from mdb_records.database import get_database

    db = get_database(StoreConfig())
    species = await GenericRepository.create(db, Species)
"""

import logging
import threading

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import (
    ConnectionFailure,
    InvalidOperation,
    OperationFailure,
    ServerSelectionTimeoutError,
)

from ..config import StoreConfig
from ..constants import CLIENT_APP_NAME, DEFAULT_MAX_IDLE_TIME_MS

logger = logging.getLogger(__name__)

# Global singleton instance
_shared_client: AsyncIOMotorClient | None = None
# Guards client creation across threads
_init_lock = threading.Lock()


def get_shared_mongo_client(config: StoreConfig | None = None) -> AsyncIOMotorClient:
    """
    Gets or creates the shared MongoDB client instance.

    Args:
        config: Connection configuration (defaults to StoreConfig() from env)

    Returns:
        Shared AsyncIOMotorClient instance

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    global _shared_client

    if _shared_client is not None:
        return _shared_client

    config = config or StoreConfig()
    config.validate()

    with _init_lock:
        # Another thread may have initialized while we waited
        if _shared_client is not None:
            return _shared_client

        logger.info(
            f"Creating shared MongoDB client with max_pool_size={config.max_pool_size}, "
            f"min_pool_size={config.min_pool_size}"
        )

        try:
            _shared_client = AsyncIOMotorClient(
                config.mongo_uri,
                serverSelectionTimeoutMS=config.server_selection_timeout_ms,
                appname=CLIENT_APP_NAME,
                maxPoolSize=config.max_pool_size,
                minPoolSize=config.min_pool_size,
                maxIdleTimeMS=DEFAULT_MAX_IDLE_TIME_MS,
            )
        except (ConnectionFailure, ServerSelectionTimeoutError, ValueError, TypeError) as e:
            logger.error(f"Failed to create shared MongoDB client: {e}", exc_info=True)
            _shared_client = None
            raise

        return _shared_client


def get_database(config: StoreConfig | None = None) -> AsyncIOMotorDatabase:
    """
    Return the configured database handle from the shared client.

    The handle is what repositories are constructed with.
    """
    config = config or StoreConfig()
    client = get_shared_mongo_client(config)
    return client[config.db_name]


async def verify_client(client: AsyncIOMotorClient | None = None) -> bool:
    """
    Ping the server through the given client (or the shared one).

    Returns:
        True if the server answered, False otherwise
    """
    client = client or _shared_client
    if client is None:
        logger.warning("No MongoDB client to verify")
        return False

    try:
        await client.admin.command("ping")
        logger.debug("MongoDB client verification successful")
        return True
    except (
        ConnectionFailure,
        ServerSelectionTimeoutError,
        OperationFailure,
        InvalidOperation,
    ):
        logger.exception("MongoDB client verification failed")
        return False


def close_shared_client() -> None:
    """
    Closes the shared MongoDB client.
    Should be called during application shutdown.
    """
    global _shared_client

    if _shared_client is not None:
        try:
            _shared_client.close()
            logger.info("Shared MongoDB client closed")
        except (InvalidOperation, AttributeError, RuntimeError) as e:
            logger.warning(f"Error closing shared MongoDB client: {e}")
        finally:
            _shared_client = None
