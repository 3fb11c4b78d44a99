"""Geolocate module - place names for photo coordinates."""

from .geocoding import Geocoder, GeocodingError, best_location, reverse_geocode

__all__ = [
    "Geocoder",
    "GeocodingError",
    "best_location",
    "reverse_geocode",
]
