"""Reverse geocoding of photo coordinates through the positionstack API."""

import os

import requests

from photo.models import Location

POSITIONSTACK_ENDPOINT = "http://api.positionstack.com/v1/"


class GeocodingError(Exception):
    """Raised when the geocoding service cannot be reached or answers garbage."""
    pass


def best_location(candidates: list[Location]) -> Location | None:
    """
    Pick the most confident candidate.

    The first candidate wins ties; an empty list means no location.
    """
    if not candidates:
        return None

    best = candidates[0]
    for candidate in candidates:
        if candidate.confidence > best.confidence:
            best = candidate
    return best


class Geocoder:
    """positionstack reverse geocoding client."""

    def __init__(
        self,
        access_key: str | None = None,
        endpoint: str | None = None,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        """
        Args:
            access_key: positionstack API key (defaults to POSITIONSTACK_KEY)
            endpoint: API base URL, ending in a slash
            timeout: Request timeout in seconds
            session: requests session to reuse across lookups
        """
        self.access_key = access_key or os.getenv("POSITIONSTACK_KEY")
        self.endpoint = endpoint or POSITIONSTACK_ENDPOINT
        if not self.endpoint.endswith("/"):
            self.endpoint += "/"
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "Geocoder":
        return cls(
            access_key=settings.positionstack_key,
            endpoint=settings.positionstack_endpoint,
            timeout=settings.http_timeout,
        )

    def lookup(self, latitude: float, longitude: float) -> list[Location]:
        """
        Fetch every candidate place for a coordinate pair.

        Raises:
            GeocodingError: On network errors, error statuses or undecodable responses
        """
        params = {
            "access_key": self.access_key or "",
            "query": f"{latitude:f},{longitude:f}",
        }
        try:
            response = self.session.get(
                f"{self.endpoint}reverse", params=params, timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise GeocodingError(f"Reverse geocoding failed: {e}") from e
        except ValueError as e:
            raise GeocodingError(f"Could not decode geocoding response: {e}") from e

        if not isinstance(payload, dict):
            raise GeocodingError("Unexpected geocoding response")
        if "error" in payload:
            raise GeocodingError(f"Geocoding service error: {payload['error']}")

        data = payload.get("data") or []
        if not isinstance(data, list):
            raise GeocodingError("Unexpected geocoding response: data is not a list")

        # positionstack answers [[]] when nothing matches
        return [Location.from_dict(item) for item in data if isinstance(item, dict)]

    def reverse(self, latitude: float, longitude: float) -> Location | None:
        """Resolve coordinates to the best matching place, or None."""
        return best_location(self.lookup(latitude, longitude))


def reverse_geocode(latitude: float, longitude: float) -> Location | None:
    """Resolve coordinates with a Geocoder configured from the environment."""
    return Geocoder().reverse(latitude, longitude)
