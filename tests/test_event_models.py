"""
Tests for event field validation.
"""
from datetime import datetime

import pytest
from bson import ObjectId

from eventhub.models.event_models import (
    EventCreateRequest,
    EventResponse,
    EventTopic,
    EventUpdateRequest,
    GeoLocation,
    validate_event_payload,
)


@pytest.fixture
def valid_payload(event_payload, user_id):
    return {**event_payload, "user": user_id}


def test_valid_payload_passes(valid_payload):
    result = validate_event_payload(valid_payload)

    assert result.is_valid
    assert result.errors == {}
    assert isinstance(result.event, EventCreateRequest)
    assert result.event.topics == [EventTopic.DATA_SCIENCE]
    assert result.event.photo == "no-photo.jpg"
    assert result.event.scholarship is False


def test_name_is_trimmed(valid_payload):
    result = validate_event_payload({**valid_payload, "name": "   AI Summit  "})
    assert result.event.name == "AI Summit"


def test_missing_required_fields_are_all_reported():
    result = validate_event_payload({})

    assert not result.is_valid
    assert result.errors == {
        "name": "Please add a name",
        "description": "Please add a description",
        "address": "Please add an address",
        "topics": "Please add at least one topic",
        "user": "Please add a user",
    }


def test_every_violated_field_is_reported(valid_payload):
    result = validate_event_payload(
        {
            **valid_payload,
            "name": "x" * 51,
            "description": "y" * 501,
            "website": "ftp://example.com",
            "phone": "1" * 21,
            "email": "not-an-email",
            "average_rating": 11,
        }
    )

    assert not result.is_valid
    assert result.errors == {
        "name": "Name can not be more than 50 characters",
        "description": "Description can not be more than 500 characters",
        "website": "Please use a valid URL with HTTP or HTTPS",
        "phone": "Phone number can not be longer than 20 characters",
        "email": "Please add a valid email",
        "average_rating": "Rating can not be more than 10",
    }


def test_name_of_exactly_fifty_characters_is_accepted(valid_payload):
    assert validate_event_payload({**valid_payload, "name": "n" * 50}).is_valid


def test_blank_name_is_rejected(valid_payload):
    result = validate_event_payload({**valid_payload, "name": "   "})
    assert result.errors == {"name": "Please add a name"}


@pytest.mark.parametrize("topics", [["Blockchain"], ["Data Science", "Gardening"], [42]])
def test_topics_outside_the_enumeration_are_rejected(valid_payload, topics):
    result = validate_event_payload({**valid_payload, "topics": topics})

    assert not result.is_valid
    assert list(result.errors) == ["topics"]
    assert "is not a supported topic" in result.errors["topics"]


def test_empty_topics_are_rejected(valid_payload):
    result = validate_event_payload({**valid_payload, "topics": []})
    assert result.errors == {"topics": "Please add at least one topic"}


def test_duplicate_topics_are_collapsed(valid_payload):
    result = validate_event_payload({**valid_payload, "topics": ["UI/UX", "Devops", "UI/UX"]})
    assert result.event.topics == [EventTopic.UI_UX, EventTopic.DEVOPS]


def test_single_topic_string_is_accepted(valid_payload):
    result = validate_event_payload({**valid_payload, "topics": "Business"})
    assert result.event.topics == [EventTopic.BUSINESS]


def test_rating_lower_bound(valid_payload):
    assert validate_event_payload({**valid_payload, "average_rating": 1}).is_valid
    result = validate_event_payload({**valid_payload, "average_rating": 0.5})
    assert result.errors == {"average_rating": "Rating must be at least 1"}


def test_optional_contact_fields(valid_payload):
    result = validate_event_payload(
        {
            **valid_payload,
            "website": "https://www.example.com/events?id=1",
            "email": "organizer@example.com",
            "phone": "+1 (555) 010-2030",
            "average_cost": 12000,
        }
    )
    assert result.is_valid


def test_blank_optional_strings_are_treated_as_absent(valid_payload):
    result = validate_event_payload({**valid_payload, "website": "", "email": "  "})

    assert result.is_valid
    assert result.event.website is None
    assert result.event.email is None


def test_invalid_user_id(valid_payload):
    result = validate_event_payload({**valid_payload, "user": "alice"})
    assert result.errors == {"user": "Please provide a valid user id"}


def test_derived_fields_cannot_be_supplied(valid_payload):
    result = validate_event_payload(
        {**valid_payload, "slug": "hacked", "location": {"type": "Point", "coordinates": [0, 0]}}
    )

    dumped = result.event.model_dump()
    assert "slug" not in dumped
    assert "location" not in dumped


def test_partial_update_only_checks_supplied_fields():
    result = validate_event_payload({"description": "New description"}, partial=True)

    assert result.is_valid
    assert isinstance(result.event, EventUpdateRequest)
    assert result.event.model_fields_set == {"description"}


def test_partial_update_rejects_null_required_field():
    result = validate_event_payload({"name": None, "topics": ["Other"]}, partial=True)
    assert result.errors == {"name": "Please add a name"}


def test_partial_update_cannot_change_owner(user_id):
    result = validate_event_payload({"user": user_id}, partial=True)

    assert result.is_valid
    assert "user" not in result.event.model_dump()


def test_geo_location_rejects_out_of_range_coordinates():
    with pytest.raises(ValueError):
        GeoLocation(coordinates=[-200.0, 37.33])
    with pytest.raises(ValueError):
        GeoLocation(coordinates=[-122.03])


def test_event_response_from_document():
    oid, user = ObjectId(), ObjectId()
    doc = {
        "_id": oid,
        "name": "AI Summit",
        "slug": "ai-summit",
        "description": "Talks",
        "topics": ["Data Science"],
        "photo": "no-photo.jpg",
        "scholarship": False,
        "created_at": datetime(2026, 10, 19, 12, 0),
        "user": user,
        "location": {"type": "Point", "coordinates": [-122.03, 37.33], "city": "Cupertino"},
    }

    response = EventResponse.from_document(doc)

    assert response.id == str(oid)
    assert response.user == str(user)
    assert response.created_at.tzinfo is not None
    assert response.location.coordinates == [-122.03, 37.33]


@pytest.mark.parametrize("rating", [1, 10, 5.5])
def test_rating_bounds_are_inclusive(valid_payload, rating):
    result = validate_event_payload({**valid_payload, "average_rating": rating})
    assert result.is_valid
    assert result.event.average_rating == rating


@pytest.mark.parametrize("rating", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_rating_is_rejected(valid_payload, rating):
    result = validate_event_payload({**valid_payload, "average_rating": rating})

    assert not result.is_valid
    assert result.errors == {"average_rating": "Rating must be a number between 1 and 10"}


@pytest.mark.parametrize("cost", [float("nan"), float("inf")])
def test_non_finite_cost_is_rejected(valid_payload, cost):
    result = validate_event_payload({**valid_payload, "average_cost": cost})
    assert result.errors == {"average_cost": "Average cost must be a finite number"}


def test_null_defaulted_fields_fall_back_to_defaults(valid_payload):
    result = validate_event_payload({**valid_payload, "photo": None, "scholarship": None})

    assert result.is_valid
    assert result.event.photo == "no-photo.jpg"
    assert result.event.scholarship is False


def test_partial_update_null_photo_restores_default():
    result = validate_event_payload({"photo": None, "scholarship": None}, partial=True)

    assert result.is_valid
    assert result.event.model_dump(exclude_unset=True) == {"photo": "no-photo.jpg", "scholarship": False}
