"""
Tests for the geocoder service against mocked provider responses.
"""
import httpx
import pytest

from eventhub.exceptions import GeocodeFailureError
from eventhub.services.geocoder_service import GeocodeCandidate, GeocoderService, select_candidate

MAPQUEST_RESPONSE = {
    "info": {"statuscode": 0, "messages": []},
    "results": [
        {
            "providedLocation": {"location": "1 Infinite Loop, Cupertino, CA"},
            "locations": [
                {
                    "street": "Infinite Loop",
                    "adminArea5": "Cupertino",
                    "adminArea3": "CA",
                    "adminArea1": "US",
                    "postalCode": "95014",
                    "latLng": {"lat": 37.33, "lng": -122.03},
                },
                {
                    "street": "Infinite Loop",
                    "adminArea5": "Sunnyvale",
                    "adminArea3": "CA",
                    "adminArea1": "US",
                    "postalCode": "94086",
                    "latLng": {"lat": 37.37, "lng": -122.04},
                },
            ],
        }
    ],
}

NOMINATIM_RESPONSE = [
    {
        "lat": "52.5162746",
        "lon": "13.3777041",
        "display_name": "Brandenburger Tor, Pariser Platz, Mitte, Berlin, 10117, Deutschland",
        "address": {
            "road": "Pariser Platz",
            "city": "Berlin",
            "state": "Berlin",
            "ISO3166-2-lvl4": "DE-BE",
            "postcode": "10117",
            "country_code": "de",
        },
    }
]


def _service(provider, handler, api_key="test-key"):
    return GeocoderService(
        provider=provider,
        api_key=api_key,
        base_url="http://geocoder.test",
        transport=httpx.MockTransport(handler),
    )


def test_select_candidate_takes_the_first():
    first = GeocodeCandidate(latitude=1.0, longitude=2.0)
    second = GeocodeCandidate(latitude=3.0, longitude=4.0)

    assert select_candidate([first, second]) is first
    assert select_candidate([]) is None


@pytest.mark.asyncio
async def test_mapquest_request_and_parsing():
    seen = {}

    def handler(request):
        seen["url"] = request.url
        return httpx.Response(200, json=MAPQUEST_RESPONSE)

    candidates = await _service("mapquest", handler).geocode("1 Infinite Loop, Cupertino, CA")

    assert seen["url"].path == "/geocoding/v1/address"
    assert seen["url"].params["key"] == "test-key"
    assert seen["url"].params["location"] == "1 Infinite Loop, Cupertino, CA"
    assert len(candidates) == 2
    assert candidates[0].longitude == -122.03
    assert candidates[0].latitude == 37.33
    assert candidates[0].city == "Cupertino"
    assert candidates[0].state_code == "CA"
    assert candidates[0].zipcode == "95014"
    assert candidates[0].country_code == "US"
    assert candidates[0].formatted_address == "Infinite Loop, Cupertino, CA 95014, US"


@pytest.mark.asyncio
async def test_resolve_location_uses_first_candidate():
    service = _service("mapquest", lambda request: httpx.Response(200, json=MAPQUEST_RESPONSE))

    location = await service.resolve_location("1 Infinite Loop, Cupertino, CA")

    assert location.type == "Point"
    assert location.coordinates == [-122.03, 37.33]
    assert location.city == "Cupertino"
    assert location.street == "Infinite Loop"


@pytest.mark.asyncio
async def test_nominatim_parsing():
    seen = {}

    def handler(request):
        seen["request"] = request
        return httpx.Response(200, json=NOMINATIM_RESPONSE)

    location = await _service("nominatim", handler, api_key=None).resolve_location("Pariser Platz, Berlin")

    assert seen["request"].url.path == "/search"
    assert seen["request"].url.params["format"] == "jsonv2"
    assert "user-agent" in seen["request"].headers
    assert location.coordinates == [13.3777041, 52.5162746]
    assert location.state == "BE"
    assert location.country == "DE"
    assert location.zipcode == "10117"


@pytest.mark.asyncio
async def test_zero_candidates_fail():
    service = _service("nominatim", lambda request: httpx.Response(200, json=[]))

    with pytest.raises(GeocodeFailureError) as exc_info:
        await service.resolve_location("Nowhere at all")

    assert exc_info.value.reason == "no matching location found"


@pytest.mark.asyncio
async def test_http_error_fails():
    service = _service("mapquest", lambda request: httpx.Response(503, text="unavailable"))

    with pytest.raises(GeocodeFailureError) as exc_info:
        await service.resolve_location("1 Infinite Loop, Cupertino, CA")

    assert "HTTP 503" in exc_info.value.reason


@pytest.mark.asyncio
async def test_transport_error_fails():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    with pytest.raises(GeocodeFailureError):
        await _service("mapquest", handler).resolve_location("1 Infinite Loop, Cupertino, CA")


@pytest.mark.asyncio
async def test_provider_status_error_fails():
    payload = {"info": {"statuscode": 401, "messages": ["The AppKey submitted with this request is invalid."]}}
    service = _service("mapquest", lambda request: httpx.Response(200, json=payload))

    with pytest.raises(GeocodeFailureError) as exc_info:
        await service.geocode("1 Infinite Loop, Cupertino, CA")

    assert exc_info.value.reason == "provider returned a malformed response"


@pytest.mark.asyncio
async def test_out_of_range_coordinates_fail():
    payload = [{"lat": "95.0", "lon": "10.0", "address": {}}]
    service = _service("nominatim", lambda request: httpx.Response(200, json=payload))

    with pytest.raises(GeocodeFailureError):
        await service.resolve_location("Somewhere")


@pytest.mark.asyncio
async def test_blank_address_fails_without_a_request():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(GeocodeFailureError):
        await _service("mapquest", handler).resolve_location("   ")


@pytest.mark.asyncio
async def test_mapquest_requires_api_key():
    service = _service("mapquest", lambda request: httpx.Response(200, json=MAPQUEST_RESPONSE), api_key="")

    with pytest.raises(GeocodeFailureError) as exc_info:
        await service.geocode("1 Infinite Loop, Cupertino, CA")

    assert "GEOCODER_API_KEY" in exc_info.value.reason


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError):
        GeocoderService(provider="carrier-pigeon")
