"""
# Data Models Package

Pydantic models for the EventHub API.

- **`event_models`**: event requests and responses, the GeoJSON location model,
  the topic enumeration and the pure `validate_event_payload()` checker.

Request/response separation follows the usual pattern:
- `*Request`: input validation (`EventCreateRequest`, `EventUpdateRequest`)
- `*Response`: output serialization (`EventResponse`)
"""

from .event_models import *

__all__ = [
    "EventTopic",
    "GeoLocation",
    "EventFields",
    "EventCreateRequest",
    "EventUpdateRequest",
    "EventResponse",
    "EventValidationResult",
    "format_validation_errors",
    "validate_event_payload",
]
