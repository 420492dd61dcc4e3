"""API routers."""

from eventhub.routes.events import router as events_router
from eventhub.routes.health import router as health_router

__all__ = ["events_router", "health_router"]
