"""
Phone number adapters: offline metadata from ``phonenumbers`` and optional
carrier/line-type enrichment from numverify.
"""

from __future__ import annotations

from typing import Any, Dict

import phonenumbers
from phonenumbers import PhoneNumberFormat, PhoneNumberType, carrier, geocoder

from .base import HTTPProviderAdapter, ProviderAdapter, ProviderDataError

NUMVERIFY_URL = "http://apilayer.net/api/validate"

NUMBER_TYPES = {
    PhoneNumberType.FIXED_LINE: "FIXED_LINE",
    PhoneNumberType.MOBILE: "MOBILE",
    PhoneNumberType.FIXED_LINE_OR_MOBILE: "FIXED_LINE_OR_MOBILE",
    PhoneNumberType.TOLL_FREE: "TOLL_FREE",
    PhoneNumberType.PREMIUM_RATE: "PREMIUM_RATE",
    PhoneNumberType.SHARED_COST: "SHARED_COST",
    PhoneNumberType.VOIP: "VOIP",
    PhoneNumberType.PERSONAL_NUMBER: "PERSONAL_NUMBER",
    PhoneNumberType.PAGER: "PAGER",
    PhoneNumberType.UAN: "UAN",
    PhoneNumberType.VOICEMAIL: "VOICEMAIL",
}


def parse_number(number: str, region: str) -> phonenumbers.PhoneNumber:
    """Parse with the region hint; raises ``phonenumbers.NumberParseException``."""
    return phonenumbers.parse(number, region, keep_raw_input=True)


class LocalPhoneAdapter(ProviderAdapter):
    """Offline parse using libphonenumber metadata. Always the chain's base record."""

    name = "local"
    yields_partial = True

    async def fetch(self, request) -> Dict[str, Any]:
        parsed = parse_number(request.number, request.region)
        type_code = phonenumbers.number_type(parsed)
        return {
            "valid": phonenumbers.is_valid_number(parsed),
            "possible": phonenumbers.is_possible_number(parsed),
            "international": phonenumbers.format_number(parsed, PhoneNumberFormat.INTERNATIONAL),
            "national": phonenumbers.format_number(parsed, PhoneNumberFormat.NATIONAL),
            "e164": phonenumbers.format_number(parsed, PhoneNumberFormat.E164),
            "country_code": str(parsed.country_code),
            "country": phonenumbers.region_code_for_number(parsed) or None,
            "number_type": NUMBER_TYPES.get(type_code, "UNKNOWN"),
            "carrier": carrier.name_for_number(parsed, "en") or None,
            "location": geocoder.description_for_number(parsed, "en") or None,
        }


class NumverifyAdapter(HTTPProviderAdapter):
    """Paid carrier and line-type lookup. Disabled without ``NUMVERIFY_API_KEY``."""

    name = "numverify"
    credential = "numverify_api_key"

    async def fetch(self, request) -> Dict[str, Any]:
        payload = await self._get_json(
            NUMVERIFY_URL,
            params={
                "access_key": self.config.numverify_api_key,
                "number": request.e164.lstrip("+"),
                "format": 1,
            },
        )
        # apilayer reports key/quota problems as 200 {"success": false, "error": {...}}
        if not isinstance(payload, dict) or "valid" not in payload:
            raise ProviderDataError("numverify response has no validity flag")

        # Blank fields come back as None so the merge keeps the offline values.
        enrichment: Dict[str, Any] = {
            "carrier": payload.get("carrier") or None,
            "location": payload.get("location") or None,
            "number_type": None,
        }
        if payload.get("line_type"):
            enrichment["number_type"] = str(payload["line_type"]).upper()
        return enrichment
