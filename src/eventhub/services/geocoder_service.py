"""
# Geocoder Service

Resolves a free-text address into a structured `GeoLocation` through an external
geocoding provider.

## Providers

- **`mapquest`**: MapQuest Geocoding API v1 (`GEOCODER_API_KEY` required)
- **`nominatim`**: OpenStreetMap Nominatim search API (no key, `GEOCODER_USER_AGENT` sent)

`GEOCODER_BASE_URL` points either provider at another host, e.g. a self-hosted
Nominatim or a test double.

## Candidate Selection

Providers answer with an ordered list of candidates. This service applies a
**first-candidate policy**: `select_candidate()` returns the first entry the
provider returned. It does not rank candidates by relevance or confidence; callers
that need the best match for an ambiguous address must supply a more specific one.

## Failure Semantics

One request is made per call, with no retries. Transport errors, non-2xx responses,
malformed payloads and empty candidate lists all raise `GeocodeFailureError`, and
`resolve_location()` only ever returns a fully built location.

```python
location = await geocoder_service.resolve_location("1 Infinite Loop, Cupertino, CA")
location.coordinates  # [-122.03, 37.33]
```
"""

from typing import Any, Dict, List, Optional, Sequence

import httpx
from pydantic import BaseModel, ValidationError

from eventhub.config import settings
from eventhub.exceptions import GeocodeFailureError
from eventhub.managers.logging_manager import get_logger
from eventhub.models.event_models import GeoLocation

logger = get_logger(prefix="[Geocoder]")

PROVIDER_BASE_URLS = {
    "mapquest": "https://www.mapquestapi.com",
    "nominatim": "https://nominatim.openstreetmap.org",
}


class GeocodeCandidate(BaseModel):
    """One location a provider matched for an address."""

    latitude: float
    longitude: float
    formatted_address: Optional[str] = None
    street_name: Optional[str] = None
    city: Optional[str] = None
    state_code: Optional[str] = None
    zipcode: Optional[str] = None
    country_code: Optional[str] = None


def select_candidate(candidates: Sequence[GeocodeCandidate]) -> Optional[GeocodeCandidate]:
    """
    Apply the first-candidate policy.

    Returns the first candidate in provider order, or `None` when there are none.
    """
    if not candidates:
        return None
    return candidates[0]


def _join(*parts: Optional[str], sep: str = ", ") -> str:
    return sep.join(part for part in parts if part)


class GeocoderService:
    """
    Client for the configured geocoding provider.

    Args:
        provider: `"mapquest"` or `"nominatim"`. Defaults to `GEOCODER_PROVIDER`.
        api_key: Provider API key. Defaults to `GEOCODER_API_KEY`.
        base_url: Provider base URL. Defaults to `GEOCODER_BASE_URL` or the public endpoint.
        timeout: Request timeout in seconds. Defaults to `GEOCODER_TIMEOUT`.
        transport: Optional httpx transport, used to substitute the network in tests.
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.provider = (provider or settings.GEOCODER_PROVIDER).lower()
        if self.provider not in PROVIDER_BASE_URLS:
            raise ValueError(f"Unsupported geocoder provider: {self.provider}")
        if api_key is None and settings.GEOCODER_API_KEY is not None:
            api_key = settings.GEOCODER_API_KEY.get_secret_value()
        self.api_key = api_key
        self.base_url = (base_url or settings.GEOCODER_BASE_URL or PROVIDER_BASE_URLS[self.provider]).rstrip("/")
        self.timeout = timeout or settings.GEOCODER_TIMEOUT
        self._transport = transport

    async def geocode(self, address: str) -> List[GeocodeCandidate]:
        """
        Ask the provider for candidates matching `address`, in provider order.

        Raises:
            GeocodeFailureError: On any transport, HTTP or payload error.
        """
        url, params, headers = self._build_request(address)
        logger.debug("Geocoding address via %s", self.provider)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Geocoder returned HTTP %d for address lookup", e.response.status_code)
            raise GeocodeFailureError(address, f"provider returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning("Geocoder request failed: %s", e)
            raise GeocodeFailureError(address, f"provider request failed: {e}") from e
        except ValueError as e:
            logger.warning("Geocoder returned a non-JSON response")
            raise GeocodeFailureError(address, "provider returned an invalid response") from e

        try:
            if self.provider == "mapquest":
                candidates = self._parse_mapquest(payload)
            else:
                candidates = self._parse_nominatim(payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Could not parse geocoder response: %s", e)
            raise GeocodeFailureError(address, "provider returned a malformed response") from e

        logger.debug("Geocoder returned %d candidate(s)", len(candidates))
        return candidates

    async def resolve_location(self, address: Optional[str]) -> GeoLocation:
        """
        Resolve `address` into a complete `GeoLocation` using the first candidate.

        Raises:
            GeocodeFailureError: If the address is blank, the lookup fails, no
                candidate is found or the candidate has unusable coordinates.
        """
        if not address or not address.strip():
            raise GeocodeFailureError(address, "no address supplied")

        candidate = select_candidate(await self.geocode(address))
        if candidate is None:
            logger.warning("No geocoding candidates found for address")
            raise GeocodeFailureError(address, "no matching location found")

        try:
            return GeoLocation(
                type="Point",
                coordinates=[candidate.longitude, candidate.latitude],
                formatted_address=candidate.formatted_address,
                street=candidate.street_name,
                city=candidate.city,
                state=candidate.state_code,
                zipcode=candidate.zipcode,
                country=candidate.country_code,
            )
        except ValidationError as e:
            raise GeocodeFailureError(address, "provider returned out-of-range coordinates") from e

    def _build_request(self, address: str):
        if self.provider == "mapquest":
            if not self.api_key:
                raise GeocodeFailureError(address, "GEOCODER_API_KEY is not configured for mapquest")
            return (
                f"{self.base_url}/geocoding/v1/address",
                {"key": self.api_key, "location": address},
                {},
            )
        return (
            f"{self.base_url}/search",
            {"q": address, "format": "jsonv2", "addressdetails": 1},
            {"User-Agent": settings.GEOCODER_USER_AGENT},
        )

    def _parse_mapquest(self, payload: Dict[str, Any]) -> List[GeocodeCandidate]:
        if not isinstance(payload, dict):
            raise TypeError("expected a JSON object")
        info = payload.get("info", {})
        if info.get("statuscode", 0) != 0:
            raise ValueError("; ".join(info.get("messages", [])) or f"status code {info['statuscode']}")

        candidates = []
        for result in payload.get("results", []):
            for location in result.get("locations", []):
                lat_lng = location["latLng"]
                street = location.get("street") or None
                city = location.get("adminArea5") or None
                state = location.get("adminArea3") or None
                zipcode = location.get("postalCode") or None
                country = location.get("adminArea1") or None
                candidates.append(
                    GeocodeCandidate(
                        latitude=lat_lng["lat"],
                        longitude=lat_lng["lng"],
                        formatted_address=_join(street, city, _join(state, zipcode, sep=" "), country) or None,
                        street_name=street,
                        city=city,
                        state_code=state,
                        zipcode=zipcode,
                        country_code=country,
                    )
                )
        return candidates

    def _parse_nominatim(self, payload: List[Dict[str, Any]]) -> List[GeocodeCandidate]:
        if not isinstance(payload, list):
            raise TypeError("expected a JSON array")
        candidates = []
        for place in payload:
            address = place.get("address", {})
            iso_state = address.get("ISO3166-2-lvl4", "")
            state_code = iso_state.split("-", 1)[1] if "-" in iso_state else address.get("state")
            country_code = address.get("country_code")
            candidates.append(
                GeocodeCandidate(
                    latitude=float(place["lat"]),
                    longitude=float(place["lon"]),
                    formatted_address=place.get("display_name"),
                    street_name=address.get("road"),
                    city=address.get("city") or address.get("town") or address.get("village"),
                    state_code=state_code,
                    zipcode=address.get("postcode"),
                    country_code=country_code.upper() if country_code else None,
                )
            )
        return candidates


# Global instance
geocoder_service = GeocoderService()
