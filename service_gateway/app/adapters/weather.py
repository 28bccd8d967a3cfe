"""
Weather adapters: wttr.in conditions, NWS active alerts, and the
condition-keyword heuristic used when NWS has nothing for a location.
"""

from __future__ import annotations

import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from shared.clock import utc_now_iso

from .base import HTTPProviderAdapter, ProviderDataError

WTTR_URL = "https://wttr.in"
NWS_ALERTS_URL = "https://api.weather.gov/alerts/active"

STORM_KEYWORDS = ("thunder", "storm", "tornado", "blizzard", "hurricane", "typhoon")


def _first(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    raise ProviderDataError("expected a non-empty list of objects")


def _text_value(items: Any) -> str:
    """wttr.in wraps text fields as ``[{"value": "..."}]``."""
    if isinstance(items, list) and items:
        return str(items[0].get("value", "")).strip()
    return ""


class WttrClient(HTTPProviderAdapter):
    """Shared wttr.in access for the conditions adapter and the alert heuristic."""

    async def _report(self, location: str) -> Optional[Dict[str, Any]]:
        """Decoded j1 report, or None when wttr.in answers 404 for an unknown location."""
        report = await self._get_json(
            f"{WTTR_URL}/{quote(location, safe='')}",
            params={"format": "j1"},
            not_found_is_empty=True,
        )
        if report is None:
            return None
        if not isinstance(report, dict):
            raise ProviderDataError("wttr.in report is not an object")
        return report


class WttrWeatherAdapter(WttrClient):
    """Current conditions plus today's forecast."""

    name = "wttr"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        report = await self._report(request.location)
        if report is None:
            return None
        current = _first(report.get("current_condition"))
        today = _first(report.get("weather"))
        astronomy = _first(today.get("astronomy"))
        area = report.get("nearest_area") or [{}]
        nearest = area[0] if isinstance(area, list) and area else {}

        return {
            "area_name": _text_value(nearest.get("areaName")),
            "region": _text_value(nearest.get("region")),
            "country": _text_value(nearest.get("country")),
            "latitude": nearest.get("latitude"),
            "longitude": nearest.get("longitude"),
            "temp_c": current.get("temp_C"),
            "temp_f": current.get("temp_F"),
            "feels_like_c": current.get("FeelsLikeC"),
            "feels_like_f": current.get("FeelsLikeF"),
            "condition": _text_value(current.get("weatherDesc")),
            "humidity": current.get("humidity"),
            "wind_mph": current.get("windspeedMiles"),
            "wind_kph": current.get("windspeedKmph"),
            "precipitation_mm": current.get("precipMM"),
            "max_temp_c": today.get("maxtempC"),
            "max_temp_f": today.get("maxtempF"),
            "min_temp_c": today.get("mintempC"),
            "min_temp_f": today.get("mintempF"),
            "sunrise": astronomy.get("sunrise"),
            "sunset": astronomy.get("sunset"),
        }


class NWSAlertsAdapter(HTTPProviderAdapter):
    """Active alerts from the US National Weather Service for a point."""

    name = "nws"

    async def fetch(self, request) -> List[Dict[str, Any]]:
        payload = await self._get_json(
            NWS_ALERTS_URL,
            params={"point": f"{request.latitude},{request.longitude}"},
            headers={
                "User-Agent": f"{self.config.user_agent} (weather-alerts)",
                "Accept": "application/geo+json",
            },
        )
        if not isinstance(payload, dict):
            raise ProviderDataError("alerts response is not an object")

        alerts = []
        for feature in payload.get("features") or []:
            props = feature.get("properties") or {}
            alerts.append({
                "alert_id": props.get("id"),
                "event": props.get("event"),
                "severity": props.get("severity"),
                "urgency": props.get("urgency"),
                "description": props.get("description") or "",
                "effective": props.get("effective"),
                "expires": props.get("expires"),
            })
        return alerts


class ConditionHeuristicAlertsAdapter(WttrClient):
    """Flags severe current conditions as a synthetic alert.

    Only meaningful as a fallback: it reports nothing unless the current
    condition text contains one of :data:`STORM_KEYWORDS`.
    """

    name = "wttr-heuristic"

    async def fetch(self, request) -> List[Dict[str, Any]]:
        report = await self._report(request.location)
        if report is None:
            return []
        current = report.get("current_condition") or [{}]
        condition = _text_value(current[0].get("weatherDesc")) if current else ""

        if not any(keyword in condition.lower() for keyword in STORM_KEYWORDS):
            return []

        return [{
            "alert_id": f"wttr-{int(time.time() * 1000)}",
            "event": f"Severe Weather: {condition}",
            "severity": "Severe",
            "urgency": "Immediate",
            "description": f"Current conditions in {request.location}: {condition}",
            "effective": utc_now_iso(),
            "expires": None,
        }]
