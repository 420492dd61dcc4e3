"""
# EventHub API Application

FastAPI entrypoint.

## Lifespan

**Startup:**
1. Connect to MongoDB (`db_manager.connect()`, retried with backoff).
2. Create or verify indexes (`db_manager.create_indexes()`), including the unique
   index on event names and the `2dsphere` index on event locations.

**Shutdown:**
1. Disconnect from MongoDB.

## Routers

- `/events`: event CRUD with slug derivation, geocoding and cascading talk deletes
- `/health`: database health probe
- `/metrics`: Prometheus metrics

Run locally with:

```bash
uvicorn eventhub.main:app --reload
```
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn

from eventhub import __version__
from eventhub.config import settings
from eventhub.database import db_manager
from eventhub.managers.logging_manager import get_logger
from eventhub.routes import events_router, health_router

logger = get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect to MongoDB and ensure indexes before serving; disconnect on shutdown.

    Raises:
        ServerSelectionTimeoutError, ConnectionFailure: MongoDB unreachable.
        PyMongoError: The unique event name index could not be created.
    """
    startup_start_time = time.time()
    logger.info(
        "Starting EventHub API v%s (%s)", __version__, "production" if settings.is_production else "development"
    )

    logger.info("Initiating database connection...")
    await db_manager.connect()

    logger.info("Creating/verifying database indexes...")
    await db_manager.create_indexes()

    logger.info("EventHub API startup completed in %.3fs", time.time() - startup_start_time)

    yield

    shutdown_start_time = time.time()
    logger.info("Shutting down EventHub API...")
    await db_manager.disconnect()
    logger.info("EventHub API shutdown completed in %.3fs", time.time() - shutdown_start_time)


app = FastAPI(
    title="EventHub API",
    description="Event listings with URL slugs, geocoded locations and cascading talk deletes.",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
    openapi_tags=[
        {"name": "Events", "description": "Create, read, update and delete events"},
        {"name": "System", "description": "System health and monitoring endpoints"},
    ],
)

routers_config = [
    ("events", events_router, "Event management endpoints"),
    ("health", health_router, "Database health probe"),
]

logger.info("Including API routers...")
for router_name, router, description in routers_config:
    app.include_router(router)
    logger.info("Successfully included %s router: %s", router_name, description)

logger.info("Setting up Prometheus metrics instrumentation...")
instrumentator = Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_instrument_requests_inprogress=True,
)
instrumentator.instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")


def run():
    """Console entrypoint: serve the app with uvicorn."""
    uvicorn.run(
        "eventhub.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
