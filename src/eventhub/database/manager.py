"""
# Database Management Module

MongoDB infrastructure for the EventHub API, built on the **Motor** async driver.

## Responsibilities

- **Connection lifecycle**: `connect()` with exponential backoff, `disconnect()` on shutdown
- **Health monitoring**: `health_check()` pings the server for the `/health` endpoint
- **Index management**: `create_indexes()` installs the indexes the event store relies on:
    - `events.name` **unique**: the store-side guarantee behind event name uniqueness
    - `events.slug`, `events.user`: lookup indexes
    - `events.location.coordinates` **2dsphere**: spherical index on the GeoJSON point
    - `talks.event`: foreign-key index used by the cascade delete
- **Query logging**: `log_query_start()` / `log_query_success()` / `log_query_error()`
  time operations and redact personal data before it reaches the logs

## Usage

```python
from eventhub.database import db_manager

await db_manager.connect()
await db_manager.create_indexes()

events = db_manager.get_collection("events")
event = await events.find_one({"slug": "ai-summit"})

await db_manager.disconnect()
```

## Configuration

- `MONGODB_URL`, `MONGODB_DATABASE`
- `MONGODB_USERNAME`, `MONGODB_PASSWORD` (optional credentials)
- `MONGODB_SERVER_SELECTION_TIMEOUT`, `MONGODB_CONNECTION_TIMEOUT` (ms)
- `EVENTS_COLLECTION`, `TALKS_COLLECTION`

Attributes:
    logger (Logger): General application logger.
    db_logger (Logger): Database operations logger (`[DATABASE]`).
    perf_logger (Logger): Performance metrics logger (`[DB_PERFORMANCE]`).
    health_logger (Logger): Health check logger (`[DB_HEALTH]`).
    db_manager (DatabaseManager): Global singleton, connected in the application lifespan.
"""

import asyncio
import time
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, GEOSPHERE
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError

from eventhub.config import settings
from eventhub.managers.logging_manager import get_logger

logger = get_logger()
db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

MAX_POOL_SIZE = 50
MIN_POOL_SIZE = 5
CONNECT_ATTEMPTS = 3

# Document keys whose values never reach the logs
SENSITIVE_FIELDS = {
    "password",
    "token",
    "secret",
    "api_key",
    "email",
    "phone",
}


class DatabaseManager:
    """
    Manages the MongoDB client, collections and indexes.

    **Lifecycle:**
    1. **Instantiation**: `client` and `database` are `None`
    2. **Connection**: `connect()` creates the Motor client and pings the server
    3. **Operations**: `get_collection()` hands out collections from the shared pool
    4. **Shutdown**: `disconnect()` closes the pool

    Attributes:
        client (`Optional[AsyncIOMotorClient]`): Motor client, set by `connect()`.
        database (`Optional[AsyncIOMotorDatabase]`): Selected database, set by `connect()`.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    def _build_connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:"
                f"{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Open the Motor client and ping the server, retrying with exponential backoff.

        Up to `CONNECT_ATTEMPTS` attempts are made, sleeping 1s, then 2s, between
        them. The ping surfaces a bad URL or an unreachable server at startup.

        Raises:
            `ServerSelectionTimeoutError`, `ConnectionFailure`: the last attempt failed.
        """
        start_time = time.time()
        db_logger.info("Connecting to %s/%s", settings.MONGODB_URL.split("@")[-1], settings.MONGODB_DATABASE)

        for attempt in range(1, CONNECT_ATTEMPTS + 1):
            self.client = AsyncIOMotorClient(
                self._build_connection_string(),
                serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                maxPoolSize=MAX_POOL_SIZE,
                minPoolSize=MIN_POOL_SIZE,
            )
            self.database = self.client[settings.MONGODB_DATABASE]
            try:
                await self.client.admin.command("ping")
            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                db_logger.warning("Connection attempt %d/%d failed: %s", attempt, CONNECT_ATTEMPTS, e)
                self.client.close()
                self.client = None
                self.database = None
                if attempt == CONNECT_ATTEMPTS:
                    raise
                await asyncio.sleep(2 ** (attempt - 1))
            else:
                perf_logger.info("Connected to MongoDB in %.3fs (attempt %d)", time.time() - start_time, attempt)
                return

    async def disconnect(self):
        """Close the Motor client. Does nothing when not connected."""
        if self.client is None:
            return
        self.client.close()
        self.client = None
        self.database = None
        db_logger.info("Disconnected from MongoDB")

    async def health_check(self) -> bool:
        """Ping MongoDB. `False` when unconnected or unreachable; never raises."""
        if self.client is None:
            health_logger.warning("No MongoDB client; call connect() first")
            return False
        try:
            await self.client.admin.command("ping")
        except PyMongoError as e:
            health_logger.error("Ping failed: %s", e)
            return False
        return True

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a collection from the connected database.

        Raises:
            `ConnectionError`: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        db_logger.debug("Retrieving collection: %s", collection_name)
        return self.database[collection_name]

    async def create_indexes(self):
        """
        Create the event and talk indexes.

        The unique index on `events.name` is required: if it cannot be created
        (for example because duplicate names already exist) the error propagates
        and startup fails. The remaining indexes are best-effort and only logged.
        """
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        try:
            db_logger.info("Creating indexes for '%s' collection", settings.EVENTS_COLLECTION)
            events_collection = self.get_collection(settings.EVENTS_COLLECTION)
            await self._create_index_if_not_exists(events_collection, "name", {"unique": True}, required=True)
            await self._create_index_if_not_exists(events_collection, "slug", {})
            await self._create_index_if_not_exists(events_collection, "user", {})
            await self._create_index_if_not_exists(events_collection, [("created_at", ASCENDING)], {})
            await self._create_index_if_not_exists(events_collection, [("location.coordinates", GEOSPHERE)], {})

            db_logger.info("Creating indexes for '%s' collection", settings.TALKS_COLLECTION)
            talks_collection = self.get_collection(settings.TALKS_COLLECTION)
            await self._create_index_if_not_exists(talks_collection, "event", {})

            total_duration = time.time() - start_time
            perf_logger.info("Database index creation completed successfully in %.3fs", total_duration)
            db_logger.info("Database indexes created successfully")

        except (ConnectionError, PyMongoError) as e:
            duration = time.time() - start_time
            perf_logger.error("Database index creation failed after %.3fs", duration)
            db_logger.error("Failed to create database indexes: %s", e)
            raise

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any], required: bool = False
    ):
        """Create an index if it doesn't already exist"""
        start_time = time.time()

        try:
            await collection.create_index(field_spec, **options)
            duration = time.time() - start_time
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, duration)
            db_logger.debug("Successfully created/ensured index: %s", field_spec)
        except PyMongoError as e:
            duration = time.time() - start_time
            perf_logger.warning("Failed to create/ensure index '%s' after %.3fs", field_spec, duration)
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)
            if required:
                raise

    # Database operation logging utilities
    def log_query_start(self, collection_name: str, operation: str, query: Optional[Dict] = None) -> float:
        """Log the start of a database query and return start time for performance tracking"""
        start_time = time.time()
        safe_query = self._sanitize_query_for_logging(query) if query else {}
        db_logger.debug("Starting %s operation on collection '%s' - Query: %s", operation, collection_name, safe_query)
        return start_time

    def log_query_success(
        self,
        collection_name: str,
        operation: str,
        start_time: float,
        result_count: Optional[int] = None,
    ):
        """Log successful completion of a database query with performance metrics"""
        duration = time.time() - start_time

        if result_count is not None:
            perf_logger.info(
                "%s on '%s' completed successfully in %.3fs - %d records",
                operation,
                collection_name,
                duration,
                result_count,
            )
        else:
            perf_logger.info("%s on '%s' completed successfully in %.3fs", operation, collection_name, duration)

    def log_query_error(
        self, collection_name: str, operation: str, start_time: float, error: Exception, query: Optional[Dict] = None
    ):
        """Log database query errors with context and performance metrics"""
        duration = time.time() - start_time
        safe_query = self._sanitize_query_for_logging(query) if query else {}

        perf_logger.error("%s on '%s' failed after %.3fs", operation, collection_name, duration)
        db_logger.error(
            "%s operation failed on collection '%s' after %.3fs - Error: %s, Query: %s",
            operation,
            collection_name,
            duration,
            error,
            safe_query,
        )

    def _sanitize_query_for_logging(self, query: Dict[str, Any]) -> Dict[str, Any]:
        """Redact personal and secret values from a query or document before logging"""
        if not isinstance(query, dict):
            return {}

        sanitized: Dict[str, Any] = {}
        for key, value in query.items():
            if any(sensitive_field in str(key).lower() for sensitive_field in SENSITIVE_FIELDS):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_query_for_logging(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_query_for_logging(item) if isinstance(item, dict) else item for item in value
                ]
            else:
                sanitized[key] = value

        return sanitized


# Global database manager instance
db_manager = DatabaseManager()
