"""
Lookup capabilities backed by public reference sources: web/news search,
geocoding, time zones, phone metadata, APOD, crypto prices and CVEs.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

import phonenumbers
from phonenumbers import PhoneNumberFormat

from shared.clock import utc_now_iso
from shared.errors import ValidationError

from ..adapters.phone import parse_number
from ..aggregation.chain import ChainResult
from ..aggregation.normalizer import (
    APOD_RULES,
    CRYPTO_RULES,
    CVE_RULES,
    GEOCODE_RULES,
    PHONE_RULES,
    REVERSE_GEOCODE_RULES,
    SEARCH_RESULT_RULES,
    TIMEZONE_RULES,
)
from .base import Capability, CapabilityHandler
from .requests import (
    CVERequest,
    EmptyRequest,
    LocationRequest,
    PhoneRequest,
    QueryRequest,
    SymbolRequest,
    ZoneRequest,
    require_text,
    validate_coordinates,
    validate_cve_id,
    validate_num_results,
    validate_region,
    validate_symbol,
)


class SearchHandler(CapabilityHandler):
    capability = Capability.SEARCH
    rules = SEARCH_RESULT_RULES
    empty_is_valid = True
    failure_message = "Search failed"

    def validate(self, params: Mapping[str, Any]) -> QueryRequest:
        return QueryRequest(
            query=require_text(params, "query"),
            num_results=validate_num_results(params.get("num_results"), self.config.max_search_results),
        )

    def normalize(self, request: QueryRequest, result: ChainResult) -> Dict[str, Any]:
        results = self.normalizer.normalize_many(result.data or [], limit=request.num_results)
        return {"query": request.query, "results": results, "count": len(results)}


class NewsHandler(SearchHandler):
    capability = Capability.NEWS
    failure_message = "News search failed"


class GeocodeHandler(CapabilityHandler):
    capability = Capability.GEOCODE
    rules = GEOCODE_RULES
    not_found_message = "Location not found"
    failure_message = "Geocoding failed"

    def validate(self, params: Mapping[str, Any]) -> LocationRequest:
        return LocationRequest(location=require_text(params, "location"))

    def normalize(self, request: LocationRequest, result: ChainResult) -> Dict[str, Any]:
        body = {"query": request.location}
        body.update(self.normalizer.normalize(result.data))
        return body


class ReverseGeocodeHandler(CapabilityHandler):
    capability = Capability.REVERSE_GEOCODE
    rules = REVERSE_GEOCODE_RULES
    not_found_message = "No address found for coordinates"
    failure_message = "Reverse geocoding failed"

    def validate(self, params: Mapping[str, Any]):
        return validate_coordinates(params.get("lat"), params.get("lon"))

    def normalize(self, request, result: ChainResult) -> Dict[str, Any]:
        body = {"latitude": request.latitude, "longitude": request.longitude}
        body.update(self.normalizer.normalize(result.data))
        return body


class TimezoneHandler(CapabilityHandler):
    capability = Capability.TIMEZONE
    rules = TIMEZONE_RULES
    not_found_message = "Unknown timezone"
    failure_message = "Timezone lookup failed"

    def validate(self, params: Mapping[str, Any]) -> ZoneRequest:
        return ZoneRequest(zone=require_text(params, "zone").strip("/"))


class TimezonesHandler(CapabilityHandler):
    capability = Capability.TIMEZONES
    empty_is_valid = True
    failure_message = "Timezone list unavailable"

    def validate(self, params: Mapping[str, Any]) -> EmptyRequest:
        return EmptyRequest()

    def normalize(self, request: EmptyRequest, result: ChainResult) -> Dict[str, Any]:
        zones = list(result.data or [])
        return {"timezones": zones, "count": len(zones)}


class PhoneHandler(CapabilityHandler):
    """Offline parse first, optional paid enrichment merged on top.

    Numbers that cannot be parsed under the region hint are rejected here,
    before any provider runs, with ``valid: false`` in the error body.
    """

    capability = Capability.PHONE
    rules = PHONE_RULES
    failure_message = "Phone lookup failed"

    def validate(self, params: Mapping[str, Any]) -> PhoneRequest:
        number = require_text(params, "number")
        region = validate_region(params.get("country"))
        try:
            parsed = parse_number(number, region)
        except phonenumbers.NumberParseException as exc:
            raise ValidationError(
                "Could not parse phone number",
                details=str(exc),
                extra={"valid": False, "input": number, "timestamp": utc_now_iso()},
            )
        return PhoneRequest(
            number=number,
            region=region,
            e164=phonenumbers.format_number(parsed, PhoneNumberFormat.E164),
        )

    def normalize(self, request: PhoneRequest, result: ChainResult) -> Dict[str, Any]:
        body = {"input": request.number}
        body.update(self.normalizer.normalize(result.data))
        body["source"] = result.source
        return body


class ApodHandler(CapabilityHandler):
    capability = Capability.APOD
    rules = APOD_RULES
    failure_message = "APOD lookup failed"

    def validate(self, params: Mapping[str, Any]) -> EmptyRequest:
        return EmptyRequest()


class CryptoHandler(CapabilityHandler):
    capability = Capability.CRYPTO
    rules = CRYPTO_RULES
    not_found_message = "Coin not found"
    failure_message = "Price lookup failed"

    def validate(self, params: Mapping[str, Any]) -> SymbolRequest:
        return SymbolRequest(symbol=validate_symbol(require_text(params, "symbol")))


class CveHandler(CapabilityHandler):
    capability = Capability.CVE
    rules = CVE_RULES
    not_found_message = "CVE not found"
    failure_message = "CVE lookup failed"

    def validate(self, params: Mapping[str, Any]) -> CVERequest:
        return CVERequest(cve_id=validate_cve_id(require_text(params, "cve_id")))
