"""
Nominatim (OpenStreetMap) geocoding adapters.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .base import HTTPProviderAdapter, ProviderDataError

NOMINATIM_URL = "https://nominatim.openstreetmap.org"


class NominatimSearchAdapter(HTTPProviderAdapter):
    """Forward geocoding: free-text location to coordinates."""

    name = "nominatim"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        places = await self._get_json(
            f"{NOMINATIM_URL}/search",
            params={"q": request.location, "format": "json", "limit": 1},
        )
        if not isinstance(places, list):
            raise ProviderDataError("search response is not a list")
        if not places:
            return None

        place = places[0]
        return {
            "display_name": place.get("display_name"),
            "latitude": float(place["lat"]),
            "longitude": float(place["lon"]),
            "place_type": place.get("type"),
            "importance": place.get("importance"),
            "bounding_box": [float(edge) for edge in place.get("boundingbox") or []],
        }


class NominatimReverseAdapter(HTTPProviderAdapter):
    """Reverse geocoding: coordinates to an address."""

    name = "nominatim-reverse"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        place = await self._get_json(
            f"{NOMINATIM_URL}/reverse",
            params={"lat": request.latitude, "lon": request.longitude, "format": "json"},
        )
        if not isinstance(place, dict):
            raise ProviderDataError("reverse response is not an object")
        # Nominatim answers 200 with {"error": "Unable to geocode"} for open sea etc.
        if place.get("error") or not place.get("display_name"):
            return None
        return {
            "display_name": place["display_name"],
            "address": dict(place.get("address") or {}),
        }
