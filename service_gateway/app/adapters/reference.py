"""
Reference-data adapters: world time zones, NASA APOD, CoinGecko prices and
NVD vulnerability records.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .base import HTTPProviderAdapter, ProviderDataError

WORLDTIME_URL = "http://worldtimeapi.org/api/timezone"
APOD_URL = "https://api.nasa.gov/planetary/apod"
COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"
NVD_CVE_URL = "https://services.nvd.nist.gov/rest/json/cves/2.0"

# Ticker shortcuts to CoinGecko ids; anything else is passed through as an id.
COIN_IDS = {
    "btc": "bitcoin",
    "eth": "ethereum",
    "ltc": "litecoin",
    "doge": "dogecoin",
    "sol": "solana",
    "ada": "cardano",
    "xrp": "ripple",
    "bnb": "binancecoin",
    "matic": "matic-network",
    "dot": "polkadot",
    "link": "chainlink",
    "avax": "avalanche-2",
    "atom": "cosmos",
    "near": "near",
    "shib": "shiba-inu",
}

CVSS_METRIC_KEYS = ("cvssMetricV31", "cvssMetricV30", "cvssMetricV2")


class WorldTimeAdapter(HTTPProviderAdapter):
    name = "worldtimeapi"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        zone = await self._get_json(
            f"{WORLDTIME_URL}/{quote(request.zone, safe='/')}",
            not_found_is_empty=True,
        )
        if zone is None:
            return None
        if not isinstance(zone, dict) or "timezone" not in zone:
            raise ProviderDataError("timezone response missing zone name")
        return {
            "zone": zone["timezone"],
            "datetime": zone.get("datetime"),
            "utc_offset": zone.get("utc_offset"),
            "day_of_week": zone.get("day_of_week"),
            "day_of_year": zone.get("day_of_year"),
            "week_number": zone.get("week_number"),
        }


class WorldTimeZonesAdapter(HTTPProviderAdapter):
    name = "worldtimeapi-zones"

    async def fetch(self, request) -> List[str]:
        zones = await self._get_json(WORLDTIME_URL)
        if not isinstance(zones, list):
            raise ProviderDataError("zone list is not a list")
        return [str(zone) for zone in zones]


class NasaApodAdapter(HTTPProviderAdapter):
    """Astronomy Picture of the Day. Uses ``DEMO_KEY`` when no key is configured."""

    name = "nasa-apod"

    async def fetch(self, request) -> Dict[str, Any]:
        picture = await self._get_json(APOD_URL, params={"api_key": self.config.nasa_api_key})
        if not isinstance(picture, dict) or "title" not in picture:
            raise ProviderDataError("APOD response missing title")
        return {
            "title": picture["title"],
            "date": picture.get("date"),
            "explanation": picture.get("explanation"),
            "url": picture.get("url"),
            "hd_url": picture.get("hdurl"),
            "media_type": picture.get("media_type"),
        }


class CoinGeckoPriceAdapter(HTTPProviderAdapter):
    name = "coingecko"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        coin_id = COIN_IDS.get(request.symbol, request.symbol)
        prices = await self._get_json(
            COINGECKO_PRICE_URL,
            params={
                "ids": coin_id,
                "vs_currencies": "usd",
                "include_24hr_change": "true",
                "include_market_cap": "true",
            },
        )
        if not isinstance(prices, dict):
            raise ProviderDataError("price response is not an object")
        quote_data = prices.get(coin_id)
        if not quote_data:
            return None
        return {
            "symbol": request.symbol,
            "coin_id": coin_id,
            "price_usd": quote_data.get("usd"),
            "change_24h": quote_data.get("usd_24h_change"),
            "market_cap_usd": quote_data.get("usd_market_cap"),
        }


class NVDCveAdapter(HTTPProviderAdapter):
    """CVE record from the NVD 2.0 API."""

    name = "nvd"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        payload = await self._get_json(NVD_CVE_URL, params={"cveId": request.cve_id})
        if not isinstance(payload, dict):
            raise ProviderDataError("NVD response is not an object")
        vulnerabilities = payload.get("vulnerabilities") or []
        if not vulnerabilities:
            return None

        cve = vulnerabilities[0].get("cve") or {}
        description = next(
            (item.get("value", "") for item in cve.get("descriptions") or [] if item.get("lang") == "en"),
            "",
        )
        cvss = self._cvss(cve.get("metrics") or {})
        return {
            "cve_id": request.cve_id,
            "description": description,
            "severity": cvss.get("baseSeverity"),
            "score": cvss.get("baseScore"),
            "published": cve.get("published"),
            "modified": cve.get("lastModified"),
            "references": [ref.get("url") for ref in cve.get("references") or [] if ref.get("url")],
        }

    @staticmethod
    def _cvss(metrics: Dict[str, Any]) -> Dict[str, Any]:
        """Prefer CVSS 3.1, then 3.0, then 2."""
        for key in CVSS_METRIC_KEYS:
            entries = metrics.get(key) or []
            if entries:
                data = dict(entries[0].get("cvssData") or {})
                # CVSS v2 keeps the severity next to cvssData, not inside it.
                data.setdefault("baseSeverity", entries[0].get("baseSeverity"))
                return data
        return {}
