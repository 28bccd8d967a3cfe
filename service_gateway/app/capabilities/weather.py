"""
Weather capabilities: current conditions and active alerts.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from shared.errors import NotFoundError

from ..aggregation.chain import ChainResult
from ..aggregation.normalizer import WEATHER_ALERT_RULES, WEATHER_RULES
from .base import Capability, CapabilityHandler, upstream_error
from .requests import LocationRequest, PointRequest, require_text


class WeatherHandler(CapabilityHandler):
    capability = Capability.WEATHER
    rules = WEATHER_RULES
    not_found_message = "Location not found"
    failure_message = "Weather lookup failed"

    def validate(self, params: Mapping[str, Any]) -> LocationRequest:
        return LocationRequest(location=require_text(params, "location"))

    def normalize(self, request: LocationRequest, result: ChainResult) -> Dict[str, Any]:
        body = {"query": request.location}
        body.update(self.normalizer.normalize(result.data))
        return body


class WeatherAlertsHandler(CapabilityHandler):
    """Geocode the location, then ask NWS and fall back to the condition heuristic.

    A location that cannot be geocoded is a 404 carrying an empty alert list.
    Once geocoded, "no alerts" is a normal answer; only a chain in which every
    provider failed is a 500.
    """

    capability = Capability.WEATHER_ALERTS
    rules = WEATHER_ALERT_RULES
    empty_is_valid = True
    failure_message = "Weather alerts lookup failed"

    def __init__(self, chains, config):
        super().__init__(chains, config)
        self.geocode_chain = chains[Capability.GEOCODE]

    def validate(self, params: Mapping[str, Any]) -> LocationRequest:
        return LocationRequest(location=require_text(params, "location"))

    async def fetch(self, request: LocationRequest) -> ChainResult:
        located = await self.geocode_chain.run(request)
        if located.exhausted:
            if located.saw_empty:
                raise NotFoundError("Location not found", extra={"alerts": []})
            raise upstream_error("Geocoding failed", located)

        point = PointRequest(
            location=request.location,
            latitude=located.data["latitude"],
            longitude=located.data["longitude"],
        )
        return await self.chain.run(point)

    def normalize(self, request: LocationRequest, result: ChainResult) -> Dict[str, Any]:
        return {
            "location": request.location,
            "alerts": self.normalizer.normalize_many(result.data or []),
        }
