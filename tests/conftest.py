"""
Shared fixtures: an in-memory stand-in for Motor collections and a geocoder
whose provider lookup is replaced by a fixed candidate list.
"""

import copy
from types import SimpleNamespace
from unittest.mock import patch

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from eventhub.services.geocoder_service import GeocodeCandidate, GeocoderService


def _matches(doc, query):
    return all(doc.get(key) == value for key, value in (query or {}).items())


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda doc: doc.get(key), reverse=direction < 0)
        return self

    def skip(self, count):
        self._docs = self._docs[count:]
        return self

    def limit(self, count):
        self._docs = self._docs[:count]
        return self

    def __aiter__(self):
        self._iter = iter(self._docs)
        return self

    async def __anext__(self):
        try:
            return next(self._iter)
        except StopIteration:
            raise StopAsyncIteration


class FakeCollection:
    """Just enough of AsyncIOMotorCollection for the event service."""

    def __init__(self, unique_fields=()):
        self.docs = []
        self.unique_fields = unique_fields

    def _check_unique(self, doc, ignore_id=None):
        for field in self.unique_fields:
            for other in self.docs:
                if other["_id"] != ignore_id and other.get(field) == doc.get(field):
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {field}")

    async def find_one(self, query, projection=None, sort=None):
        cursor = self.find(query)
        for key, direction in sort or []:
            cursor.sort(key, direction)
        return next(iter(cursor._docs), None)

    def find(self, query=None):
        return FakeCursor([copy.deepcopy(doc) for doc in self.docs if _matches(doc, query)])

    async def insert_one(self, doc):
        self._check_unique(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def replace_one(self, query, doc):
        for index, existing in enumerate(self.docs):
            if _matches(existing, query):
                self._check_unique(doc, ignore_id=existing["_id"])
                self.docs[index] = copy.deepcopy(doc)
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)

    async def delete_one(self, query):
        for index, existing in enumerate(self.docs):
            if _matches(existing, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    async def delete_many(self, query):
        before = len(self.docs)
        self.docs = [doc for doc in self.docs if not _matches(doc, query)]
        return SimpleNamespace(deleted_count=before - len(self.docs))


class StubGeocoder(GeocoderService):
    """Geocoder whose provider lookup returns fixed candidates or raises a fixed error."""

    def __init__(self, candidates=None, error=None):
        super().__init__(provider="nominatim", base_url="http://geocoder.test")
        self.candidates = candidates or []
        self.error = error
        self.calls = []

    async def geocode(self, address):
        self.calls.append(address)
        if self.error is not None:
            raise self.error
        return list(self.candidates)


@pytest.fixture
def make_geocoder():
    return StubGeocoder


@pytest.fixture
def cupertino():
    return GeocodeCandidate(
        longitude=-122.03,
        latitude=37.33,
        formatted_address="1 Infinite Loop, Cupertino, CA 95014",
        street_name="Infinite Loop",
        city="Cupertino",
        state_code="CA",
        zipcode="95014",
        country_code="US",
    )


@pytest.fixture
def user_id():
    return str(ObjectId())


@pytest.fixture
def event_payload():
    return {
        "name": "AI Summit",
        "description": "A day of talks on applied machine learning",
        "address": "1 Infinite Loop, Cupertino, CA",
        "topics": ["Data Science"],
    }


@pytest.fixture
def fake_db():
    collections = {
        "events": FakeCollection(unique_fields=("name",)),
        "talks": FakeCollection(),
    }
    with patch("eventhub.services.event_service.db_manager") as mock:
        mock.get_collection.side_effect = lambda name: collections.setdefault(name, FakeCollection())
        yield collections
