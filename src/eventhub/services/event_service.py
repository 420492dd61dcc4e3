"""
# Event Service

Owns the event lifecycle. The save and delete hooks run as explicit, ordered
pipelines rather than implicit interceptors:

```
create/update:  validate -> check name uniqueness -> derive slug -> resolve location -> persist
delete:         remove dependent talks -> remove event
```

## Save Pipeline

1. **Validate** the payload against every static field constraint
   (`validate_event_payload`). All violated fields are reported together.
2. **Uniqueness**: a read on `name`. The unique index on `events.name` backs this up
   when two saves race; the resulting `DuplicateKeyError` is reported the same way.
3. **Slug**: recomputed from `name` on every save.
4. **Location**: the address is geocoded and replaced by the derived GeoJSON
   location. On create an address is mandatory; on update the address is optional
   and the stored location is kept when none is supplied. If geocoding fails the
   save is aborted before anything is written.
5. **Persist** without the address.

## Delete Pipeline

Talks referencing the event are deleted first. If that fails the event is left in
place and `CascadeDeleteFailureError` is raised. This is a best-effort cascade, not
a multi-document transaction: if the event delete itself fails after the talks are
gone, the talks stay deleted.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Union

from bson import ObjectId
from pymongo import ASCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from eventhub.config import settings
from eventhub.database import db_manager
from eventhub.exceptions import (
    CascadeDeleteFailureError,
    EventNotFoundError,
    EventValidationError,
    UniquenessConflictError,
)
from eventhub.managers.logging_manager import get_logger
from eventhub.models.event_models import (
    EventCreateRequest,
    EventResponse,
    EventUpdateRequest,
    validate_event_payload,
)
from eventhub.services.geocoder_service import GeocoderService, geocoder_service
from eventhub.utils.slug import derive_slug

logger = get_logger(prefix="[EventService]")


def _to_object_id(event_id: Union[str, ObjectId]) -> ObjectId:
    if isinstance(event_id, ObjectId):
        return event_id
    if not ObjectId.is_valid(event_id):
        raise EventNotFoundError(str(event_id))
    return ObjectId(event_id)


class EventService:
    """
    Service for creating, updating, reading and deleting events.

    Args:
        geocoder: Address resolver. Defaults to the global `geocoder_service`.
    """

    def __init__(self, geocoder: Optional[GeocoderService] = None):
        self.events_collection = settings.EVENTS_COLLECTION
        self.talks_collection = settings.TALKS_COLLECTION
        self.geocoder = geocoder or geocoder_service

    # --- Validation ---

    async def _find_name_conflict(self, name: str, exclude_id: Optional[ObjectId] = None) -> bool:
        collection = db_manager.get_collection(self.events_collection)
        query = {"name": name}
        start_time = db_manager.log_query_start(self.events_collection, "find_one", query)
        existing = await collection.find_one(query, {"_id": 1})
        db_manager.log_query_success(self.events_collection, "find_one", start_time)
        return existing is not None and existing["_id"] != exclude_id

    async def _validate(
        self,
        payload: Mapping[str, Any],
        partial: bool = False,
        exclude_id: Optional[ObjectId] = None,
        current_name: Optional[str] = None,
    ) -> Union[EventCreateRequest, EventUpdateRequest]:
        """
        Run the static checks plus the name uniqueness read.

        Raises:
            UniquenessConflictError: When the name is taken and nothing else is wrong.
            EventValidationError: For any other combination of violations.
        """
        result = validate_event_payload(payload, partial=partial)
        errors = dict(result.errors)

        if result.is_valid:
            name = result.event.name
        else:
            raw_name = payload.get("name")
            name = raw_name.strip() if "name" not in errors and isinstance(raw_name, str) else None

        if name and name != current_name and await self._find_name_conflict(name, exclude_id):
            if not errors:
                logger.info("Rejected event: name '%s' already in use", name)
                raise UniquenessConflictError(name)
            errors["name"] = UniquenessConflictError(name).errors["name"]

        if errors:
            logger.info("Rejected event payload - invalid fields: %s", sorted(errors))
            raise EventValidationError(errors)
        return result.event

    # --- Derivations ---

    async def _derive_fields(self, record: Dict[str, Any], address: Optional[str]) -> Dict[str, Any]:
        """Set the slug, then the location when an address is given, and drop the address."""
        record["slug"] = derive_slug(record.get("name"))
        if address is not None:
            location = await self.geocoder.resolve_location(address)
            record["location"] = location.model_dump()
        record.pop("address", None)
        return record

    # --- Create / Update ---

    async def create_event(self, payload: Mapping[str, Any], user_id: Optional[str] = None) -> EventResponse:
        """
        Validate, derive and insert a new event.

        Args:
            payload: Caller-supplied fields, including `address`.
            user_id: Owning user. Overrides any `user` in the payload.

        Raises:
            EventValidationError, UniquenessConflictError, GeocodeFailureError
        """
        data = dict(payload)
        if user_id is not None:
            data["user"] = user_id
        event = await self._validate(data)

        record = event.model_dump(mode="json", exclude={"address", "user"}, exclude_none=True)
        record["user"] = ObjectId(event.user)
        record["created_at"] = datetime.now(timezone.utc)
        record = await self._derive_fields(record, event.address)

        collection = db_manager.get_collection(self.events_collection)
        start_time = db_manager.log_query_start(self.events_collection, "insert_one", record)
        try:
            result = await collection.insert_one(record)
        except DuplicateKeyError as e:
            db_manager.log_query_error(self.events_collection, "insert_one", start_time, e)
            raise UniquenessConflictError(event.name) from e
        db_manager.log_query_success(self.events_collection, "insert_one", start_time)

        record["_id"] = result.inserted_id
        logger.info("Created event %s (%s)", result.inserted_id, record["slug"])
        return EventResponse.from_document(record)

    async def update_event(self, event_id: str, payload: Mapping[str, Any]) -> EventResponse:
        """
        Apply a partial update and save the event again.

        Supplied `null` values clear optional fields and reset `photo` and
        `scholarship` to their defaults. The slug is always recomputed;
        the location only when the payload carries an `address`.

        Raises:
            EventNotFoundError, EventValidationError, UniquenessConflictError, GeocodeFailureError
        """
        oid = _to_object_id(event_id)
        collection = db_manager.get_collection(self.events_collection)
        existing = await collection.find_one({"_id": oid})
        if existing is None:
            raise EventNotFoundError(str(event_id))

        update = await self._validate(payload, partial=True, exclude_id=oid, current_name=existing.get("name"))
        changes = update.model_dump(mode="json", exclude_unset=True, exclude={"address"})

        record = dict(existing)
        for field, value in changes.items():
            if value is None:
                record.pop(field, None)
            else:
                record[field] = value
        address = update.address if "address" in update.model_fields_set else None
        record = await self._derive_fields(record, address)

        start_time = db_manager.log_query_start(self.events_collection, "replace_one", {"_id": oid})
        try:
            await collection.replace_one({"_id": oid}, record)
        except DuplicateKeyError as e:
            db_manager.log_query_error(self.events_collection, "replace_one", start_time, e, {"_id": oid})
            raise UniquenessConflictError(record["name"]) from e
        db_manager.log_query_success(self.events_collection, "replace_one", start_time)

        logger.info("Updated event %s (fields: %s)", oid, sorted(changes) + (["location"] if address else []))
        return EventResponse.from_document(record)

    # --- Delete ---

    async def delete_event(self, event_id: str) -> int:
        """
        Delete an event after removing every talk that references it.

        Returns:
            Number of talks removed.

        Raises:
            EventNotFoundError: No such event.
            CascadeDeleteFailureError: Talks could not be removed; the event is kept.
        """
        oid = _to_object_id(event_id)
        events = db_manager.get_collection(self.events_collection)
        if await events.find_one({"_id": oid}, {"_id": 1}) is None:
            raise EventNotFoundError(str(event_id))

        logger.info("Talks being removed from event %s", oid)
        talks = db_manager.get_collection(self.talks_collection)
        query = {"event": oid}
        start_time = db_manager.log_query_start(self.talks_collection, "delete_many", query)
        try:
            result = await talks.delete_many(query)
        except PyMongoError as e:
            db_manager.log_query_error(self.talks_collection, "delete_many", start_time, e, query)
            raise CascadeDeleteFailureError(str(oid), str(e)) from e
        db_manager.log_query_success(self.talks_collection, "delete_many", start_time, result.deleted_count)

        await events.delete_one({"_id": oid})
        logger.info("Deleted event %s and %d talk(s)", oid, result.deleted_count)
        return result.deleted_count

    # --- Reads ---

    async def get_event(self, event_id: str) -> EventResponse:
        """Raises `EventNotFoundError` when absent."""
        oid = _to_object_id(event_id)
        doc = await db_manager.get_collection(self.events_collection).find_one({"_id": oid})
        if doc is None:
            raise EventNotFoundError(str(event_id))
        return EventResponse.from_document(doc)

    async def get_event_by_slug(self, slug: str) -> EventResponse:
        """
        Return the event with this slug.

        Slugs are not unique ("AI Summit" and "AI-Summit" share `ai-summit`), so the
        oldest matching event wins.

        Raises:
            EventNotFoundError: No event has this slug.
        """
        collection = db_manager.get_collection(self.events_collection)
        doc = await collection.find_one({"slug": slug}, sort=[("created_at", ASCENDING)])
        if doc is None:
            raise EventNotFoundError(slug)
        return EventResponse.from_document(doc)

    async def list_events(self, skip: int = 0, limit: int = 25) -> List[EventResponse]:
        """Newest events first."""
        collection = db_manager.get_collection(self.events_collection)
        cursor = collection.find({}).sort("created_at", -1).skip(skip).limit(limit)
        events = []
        async for doc in cursor:
            events.append(EventResponse.from_document(doc))
        return events
