"""
Event API routes.

Request bodies are accepted as raw JSON objects and checked by the event service,
so every validation failure comes back in one shape:

```json
{"detail": {"message": "Event validation failed", "errors": {"name": "Please add a name"}}}
```

Error mapping: validation 400, duplicate name 409, unknown event 404, geocoding
failure 502, cascade delete failure 500.
"""

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, status

from eventhub.exceptions import (
    CascadeDeleteFailureError,
    EventError,
    EventNotFoundError,
    EventValidationError,
    GeocodeFailureError,
    UniquenessConflictError,
)
from eventhub.managers.logging_manager import get_logger
from eventhub.models.event_models import EventResponse
from eventhub.services.event_service import EventService

logger = get_logger(prefix="[EventRoutes]")

router = APIRouter(prefix="/events", tags=["Events"])


# Dependency to get EventService
async def get_event_service():
    return EventService()


# The user reference is opaque here; an upstream gateway authenticates and sets the header
async def get_current_user_id(x_user_id: str = Header(..., description="Authenticated user id")):
    return x_user_id


def _to_http_exception(error: EventError) -> HTTPException:
    if isinstance(error, UniquenessConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail={"message": error.message, "errors": error.errors}
        )
    if isinstance(error, EventValidationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail={"message": error.message, "errors": error.errors}
        )
    if isinstance(error, EventNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    if isinstance(error, GeocodeFailureError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Could not geocode address: {error.reason}"
        )
    if isinstance(error, CascadeDeleteFailureError):
        logger.error("Cascade delete failed for event %s: %s", error.event_id, error.reason)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not remove the event's talks"
        )
    logger.error("Unhandled event error: %s", error)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: Dict[str, Any] = Body(...),
    service: EventService = Depends(get_event_service),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create an event. The address is geocoded into a location and not stored.
    """
    try:
        return await service.create_event(payload, user_id=user_id)
    except EventError as e:
        raise _to_http_exception(e) from e


@router.get("", response_model=List[EventResponse])
async def list_events(
    skip: int = Query(0, ge=0, description="Number of events to skip"),
    limit: int = Query(25, ge=1, le=100, description="Maximum number of events to return"),
    service: EventService = Depends(get_event_service),
):
    """
    List events, newest first.
    """
    return await service.list_events(skip=skip, limit=limit)


@router.get("/slug/{slug}", response_model=EventResponse)
async def get_event_by_slug(slug: str, service: EventService = Depends(get_event_service)):
    try:
        return await service.get_event_by_slug(slug)
    except EventError as e:
        raise _to_http_exception(e) from e


@router.get("/{event_id}", response_model=EventResponse)
async def get_event(event_id: str, service: EventService = Depends(get_event_service)):
    try:
        return await service.get_event(event_id)
    except EventError as e:
        raise _to_http_exception(e) from e


@router.put("/{event_id}", response_model=EventResponse)
async def update_event(
    event_id: str,
    payload: Dict[str, Any] = Body(...),
    service: EventService = Depends(get_event_service),
):
    """
    Update an event. Supplying an address re-geocodes the location.
    """
    try:
        return await service.update_event(event_id, payload)
    except EventError as e:
        raise _to_http_exception(e) from e


@router.delete("/{event_id}")
async def delete_event(event_id: str, service: EventService = Depends(get_event_service)):
    """
    Delete an event together with all of its talks.
    """
    try:
        talks_removed = await service.delete_event(event_id)
    except EventError as e:
        raise _to_http_exception(e) from e
    return {"message": "Event deleted successfully", "talks_removed": talks_removed}
