"""Liveness and readiness probes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from eventhub.database import db_manager

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    """Report whether MongoDB answers a ping. Responds 503 when it does not."""
    if await db_manager.health_check():
        return {"status": "healthy", "database": "connected"}
    return JSONResponse(status_code=503, content={"status": "unhealthy", "database": "unavailable"})
