"""
Exceptions raised by the event service.

All of them derive from `EventError` so route handlers can translate the whole
family into HTTP responses in one place.
"""

from typing import Dict, Optional


class EventError(Exception):
    """Base class for event service errors."""


class EventValidationError(EventError):
    """
    A candidate event violated one or more field constraints.

    Attributes:
        errors: Field name to human-readable reason, one entry per violated field.
    """

    def __init__(self, errors: Dict[str, str], message: str = "Event validation failed"):
        super().__init__(message)
        self.message = message
        self.errors = dict(errors)

    def __str__(self) -> str:
        details = "; ".join(f"{field}: {reason}" for field, reason in self.errors.items())
        return f"{self.message} ({details})" if details else self.message


class UniquenessConflictError(EventValidationError):
    """Another event already uses this name."""

    def __init__(self, name: str):
        super().__init__({"name": f"An event named '{name}' already exists"}, message="Duplicate event name")
        self.name = name


class GeocodeFailureError(EventError):
    """The address could not be resolved to a location. The save is aborted."""

    def __init__(self, address: Optional[str], reason: str):
        super().__init__(f"Could not geocode address '{address}': {reason}")
        self.address = address
        self.reason = reason


class CascadeDeleteFailureError(EventError):
    """Dependent talks could not be removed, so the event was kept."""

    def __init__(self, event_id: str, reason: str):
        super().__init__(f"Could not remove talks of event {event_id}: {reason}")
        self.event_id = event_id
        self.reason = reason


class EventNotFoundError(EventError):
    """No event matches the given identifier."""

    def __init__(self, identifier: str):
        super().__init__(f"Event not found: {identifier}")
        self.identifier = identifier
