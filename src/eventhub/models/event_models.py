"""
Event data models.

Request models carry what a caller may supply; derived fields (`slug`, `location`,
`created_at`) are not declared on them, so any such keys in a payload are dropped
during parsing and can never override the derived values.

**Validation rules:**
*   **name**: required, trimmed, at most 50 characters. Uniqueness is checked by the service.
*   **description**: required, at most 500 characters.
*   **website**: optional, must be an HTTP or HTTPS URL.
*   **phone**: optional, at most 20 characters.
*   **email**: optional, must be a valid email address.
*   **address**: required on create. Used only to derive `location`, never stored.
*   **topics**: required, non-empty, each value from `EventTopic`. Duplicates are collapsed.
*   **average_rating**: optional, a finite number between 1 and 10.
*   **average_cost**: optional, a finite number.
*   **photo**, **scholarship**: defaulted. An explicit null restores the default.
*   **user**: required on create, a MongoDB ObjectId string.

Blank optional strings are treated as absent.
"""

import math
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from eventhub.config import settings

NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
PHONE_MAX_LENGTH = 20
RATING_MIN = 1
RATING_MAX = 10

WEBSITE_PATTERN = re.compile(
    r"https?://(www\.)?[-a-zA-Z0-9@:%._\+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_\+.~#?&//=]*)"
)
EMAIL_PATTERN = re.compile(
    r"^(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))@"
    r"((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)

REQUIRED_MESSAGES = {
    "name": "Please add a name",
    "description": "Please add a description",
    "address": "Please add an address",
    "topics": "Please add at least one topic",
    "user": "Please add a user",
}


class EventTopic(str, Enum):
    """Closed set of topics an event can be listed under."""

    WEB_DEVELOPMENT = "Web Development"
    MOBILE_DEVELOPMENT = "Mobile Development"
    UI_UX = "UI/UX"
    DATA_SCIENCE = "Data Science"
    BUSINESS = "Business"
    DEVOPS = "Devops"
    OTHER = "Other"


TOPIC_VALUES = [topic.value for topic in EventTopic]


def _required(field: str, v: Any) -> Any:
    if v is None:
        raise ValueError(REQUIRED_MESSAGES[field])
    return v


def _blank_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v


class GeoLocation(BaseModel):
    """
    GeoJSON point plus the address components returned by the geocoder.

    `coordinates` is `[longitude, latitude]`, the order the `2dsphere` index expects.
    """

    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., description="[longitude, latitude]")
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v):
        if len(v) != 2:
            raise ValueError("Coordinates must be [longitude, latitude]")
        longitude, latitude = v
        if not -180 <= longitude <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        if not -90 <= latitude <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v


class EventFields(BaseModel):
    """
    Fields shared by the create and update requests, all optional here.

    Validators run only on values the caller actually supplied, so an update that
    omits a field leaves it alone while an explicit `null` for a required field
    is rejected.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, description="Event name, unique across all events")
    description: Optional[str] = Field(None, description="Event description")
    website: Optional[str] = Field(None, description="HTTP or HTTPS URL")
    phone: Optional[str] = Field(None, description="Contact phone number")
    email: Optional[str] = Field(None, description="Contact email address")
    address: Optional[str] = Field(None, description="Free-text address, geocoded into location")
    topics: Optional[List[EventTopic]] = Field(None, description="Topics the event covers")
    average_rating: Optional[float] = Field(None, description="Average rating, 1 to 10")
    average_cost: Optional[float] = Field(None, description="Average cost")
    photo: Optional[str] = Field(None, description="Photo filename")
    scholarship: Optional[bool] = Field(None, description="Whether scholarships are offered")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = _required("name", v).strip()
        if not v:
            raise ValueError(REQUIRED_MESSAGES["name"])
        if len(v) > NAME_MAX_LENGTH:
            raise ValueError(f"Name can not be more than {NAME_MAX_LENGTH} characters")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v):
        v = _required("description", v)
        if not v.strip():
            raise ValueError(REQUIRED_MESSAGES["description"])
        if len(v) > DESCRIPTION_MAX_LENGTH:
            raise ValueError(f"Description can not be more than {DESCRIPTION_MAX_LENGTH} characters")
        return v

    @field_validator("address")
    @classmethod
    def validate_address(cls, v):
        v = _required("address", v).strip()
        if not v:
            raise ValueError(REQUIRED_MESSAGES["address"])
        return v

    @field_validator("website", "phone", "email", mode="before")
    @classmethod
    def blank_optional_strings(cls, v):
        return _blank_to_none(v)

    @field_validator("website")
    @classmethod
    def validate_website(cls, v):
        if v is not None and not WEBSITE_PATTERN.search(v):
            raise ValueError("Please use a valid URL with HTTP or HTTPS")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v is not None and len(v) > PHONE_MAX_LENGTH:
            raise ValueError(f"Phone number can not be longer than {PHONE_MAX_LENGTH} characters")
        return v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v):
        if v is not None and not EMAIL_PATTERN.match(v):
            raise ValueError("Please add a valid email")
        return v

    @field_validator("topics", mode="before")
    @classmethod
    def validate_topics(cls, v):
        v = _required("topics", v)
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, (list, tuple, set)):
            raise ValueError("Topics must be a list of strings")
        if not v:
            raise ValueError(REQUIRED_MESSAGES["topics"])

        topics = []
        for topic in v:
            value = topic.value if isinstance(topic, EventTopic) else topic
            if not isinstance(value, str) or value not in TOPIC_VALUES:
                raise ValueError(f"'{value}' is not a supported topic. Allowed topics: {', '.join(TOPIC_VALUES)}")
            if value not in topics:
                topics.append(value)
        return topics

    @field_validator("photo", "scholarship", mode="before")
    @classmethod
    def null_to_default(cls, v, info):
        # An explicit null restores the default; stored events always carry both fields
        if v is None:
            return settings.DEFAULT_EVENT_PHOTO if info.field_name == "photo" else False
        return v

    @field_validator("average_cost")
    @classmethod
    def validate_average_cost(cls, v):
        if v is not None and not math.isfinite(v):
            raise ValueError("Average cost must be a finite number")
        return v

    @field_validator("average_rating")
    @classmethod
    def validate_average_rating(cls, v):
        if v is None:
            return v
        if not math.isfinite(v):
            raise ValueError(f"Rating must be a number between {RATING_MIN} and {RATING_MAX}")
        if v < RATING_MIN:
            raise ValueError(f"Rating must be at least {RATING_MIN}")
        if v > RATING_MAX:
            raise ValueError(f"Rating can not be more than {RATING_MAX}")
        return v


class EventCreateRequest(EventFields):
    """Request model for creating an event."""

    name: str = Field(..., description="Event name, unique across all events")
    description: str = Field(..., description="Event description")
    address: str = Field(..., description="Free-text address, geocoded into location")
    topics: List[EventTopic] = Field(..., description="Topics the event covers")
    photo: str = Field(default_factory=lambda: settings.DEFAULT_EVENT_PHOTO, description="Photo filename")
    scholarship: bool = Field(False, description="Whether scholarships are offered")
    user: str = Field(..., description="ObjectId of the owning user")

    @field_validator("user")
    @classmethod
    def validate_user(cls, v):
        if not ObjectId.is_valid(v):
            raise ValueError("Please provide a valid user id")
        return v


class EventUpdateRequest(EventFields):
    """
    Request model for updating an event. Only supplied fields change.

    The owning user cannot be changed through an update.
    """


class EventResponse(BaseModel):
    """Event as returned by the API."""

    id: str
    name: str
    slug: str
    description: str
    website: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    location: Optional[GeoLocation] = None
    topics: List[EventTopic]
    average_rating: Optional[float] = None
    average_cost: Optional[float] = None
    photo: str
    scholarship: bool = False
    created_at: datetime
    user: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "6530f0c2a1b2c3d4e5f60718",
                "name": "AI Summit",
                "slug": "ai-summit",
                "description": "A day of talks on applied machine learning",
                "location": {
                    "type": "Point",
                    "coordinates": [-122.03, 37.33],
                    "formatted_address": "1 Infinite Loop, Cupertino, CA 95014",
                    "street": "Infinite Loop",
                    "city": "Cupertino",
                    "state": "CA",
                    "zipcode": "95014",
                    "country": "US",
                },
                "topics": ["Data Science"],
                "photo": "no-photo.jpg",
                "scholarship": False,
                "created_at": "2026-10-19T12:00:00Z",
                "user": "6530f0c2a1b2c3d4e5f60700",
            }
        }
    )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "EventResponse":
        """Build a response from a stored event document."""
        data = {key: value for key, value in doc.items() if key != "_id"}
        data["id"] = str(doc["_id"])
        data["user"] = str(doc["user"])
        created_at = data.get("created_at")
        if isinstance(created_at, datetime) and created_at.tzinfo is None:
            # MongoDB returns naive UTC datetimes
            data["created_at"] = created_at.replace(tzinfo=timezone.utc)
        return cls.model_validate(data)


class EventValidationResult(BaseModel):
    """
    Outcome of validating a candidate event.

    Attributes:
        is_valid: `True` when every field constraint holds.
        errors: Field name to reason, one entry per violated field.
        event: The parsed request when valid.
    """

    is_valid: bool
    errors: Dict[str, str] = Field(default_factory=dict)
    event: Optional[Union[EventCreateRequest, EventUpdateRequest]] = None


def format_validation_errors(exc: ValidationError) -> Dict[str, str]:
    """Collapse pydantic errors into one human-readable reason per top-level field."""
    errors: Dict[str, str] = {}
    for error in exc.errors():
        field = str(error["loc"][0]) if error.get("loc") else "__root__"
        if field in errors:
            continue
        if field in REQUIRED_MESSAGES and (error["type"] == "missing" or error.get("input") is None):
            errors[field] = REQUIRED_MESSAGES[field]
        elif error["type"] == "value_error":
            errors[field] = str(error["ctx"]["error"])
        else:
            errors[field] = error["msg"]
    return errors


def validate_event_payload(payload: Mapping[str, Any], partial: bool = False) -> EventValidationResult:
    """
    Check a candidate event against every static field constraint.

    Pure: no store access, no exceptions for invalid input. Every violated field
    is reported, not just the first.

    Args:
        payload: Raw field mapping, e.g. a decoded JSON body.
        partial: Validate as an update (only supplied fields) instead of a create.

    Returns:
        An `EventValidationResult`.
    """
    model = EventUpdateRequest if partial else EventCreateRequest
    try:
        event = model.model_validate(dict(payload))
    except ValidationError as exc:
        return EventValidationResult(is_valid=False, errors=format_validation_errors(exc))
    return EventValidationResult(is_valid=True, event=event)
