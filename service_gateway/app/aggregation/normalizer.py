"""
Declarative normalization from provider-neutral records to the stable
per-capability output schema.

Every capability owns one tuple of :class:`FieldRule` entries. A rule names
the output field (dotted targets build nested objects), where to read it from
the adapter record, and the caps to apply. Because rules are attached to the
capability rather than the provider, any provider in a fallback chain is
subject to the same renames and limits.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from shared.clock import format_iso

_MISSING = object()


@dataclass(frozen=True)
class FieldRule:
    target: str
    source: Optional[str] = None
    max_length: Optional[int] = None
    max_items: Optional[int] = None
    convert: Optional[Callable[[Any], Any]] = None
    default: Any = None


def to_number(value: Any) -> Any:
    """Numeric strings become int/float; anything else is returned unchanged."""
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return value
    return value


def to_iso(value: Any) -> Any:
    return format_iso(value) if isinstance(value, datetime) else value


def upper(value: Any) -> Any:
    return value.upper() if isinstance(value, str) else value


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit]


def passthrough(*names: str) -> tuple:
    return tuple(FieldRule(name) for name in names)


class Normalizer:
    """Applies a rule set to one record or a list of records."""

    def __init__(self, rules: Sequence[FieldRule], *, max_records: Optional[int] = None):
        self.rules = tuple(rules)
        self.max_records = max_records

    def normalize(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        output: Dict[str, Any] = {}
        for rule in self.rules:
            value = _lookup(record, rule.source or rule.target)
            if value is _MISSING or value is None:
                value = copy.copy(rule.default)
            elif rule.convert is not None:
                value = rule.convert(value)

            if isinstance(value, str) and rule.max_length is not None:
                value = truncate(value, rule.max_length)
            elif isinstance(value, (list, tuple)) and rule.max_items is not None:
                value = list(value)[:rule.max_items]

            _assign(output, rule.target, value)
        return output

    def normalize_many(self, records: Iterable[Mapping[str, Any]], limit: Optional[int] = None) -> List[Dict[str, Any]]:
        caps = [cap for cap in (limit, self.max_records) if cap is not None]
        items = list(records or [])
        if caps:
            items = items[:min(caps)]
        return [self.normalize(record) for record in items]


def _lookup(record: Mapping[str, Any], path: str) -> Any:
    current: Any = record
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _assign(output: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    target = output
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


# ---------------------------------------------------------------------------
# Per-capability rule sets
# ---------------------------------------------------------------------------

ALERT_DESCRIPTION_LIMIT = 500
CVE_DESCRIPTION_LIMIT = 800
CVE_REFERENCE_LIMIT = 5
SNIPPET_LIMIT = 500
APOD_EXPLANATION_LIMIT = 2000

WEATHER_ALERT_RULES = (
    FieldRule("id", "alert_id"),
    FieldRule("title", "event"),
    FieldRule("severity"),
    FieldRule("urgency"),
    FieldRule("description", max_length=ALERT_DESCRIPTION_LIMIT, default=""),
    FieldRule("effective"),
    FieldRule("expires"),
)

WEATHER_RULES = (
    FieldRule("location.area", "area_name"),
    FieldRule("location.region", "region"),
    FieldRule("location.country", "country"),
    FieldRule("location.latitude", "latitude", convert=to_number),
    FieldRule("location.longitude", "longitude", convert=to_number),
    FieldRule("current.temp_c", "temp_c", convert=to_number),
    FieldRule("current.temp_f", "temp_f", convert=to_number),
    FieldRule("current.feels_like_c", "feels_like_c", convert=to_number),
    FieldRule("current.feels_like_f", "feels_like_f", convert=to_number),
    FieldRule("current.condition", "condition"),
    FieldRule("current.humidity", "humidity", convert=to_number),
    FieldRule("current.wind_mph", "wind_mph", convert=to_number),
    FieldRule("current.wind_kph", "wind_kph", convert=to_number),
    FieldRule("current.precipitation_mm", "precipitation_mm", convert=to_number),
    FieldRule("forecast.max_temp_c", "max_temp_c", convert=to_number),
    FieldRule("forecast.max_temp_f", "max_temp_f", convert=to_number),
    FieldRule("forecast.min_temp_c", "min_temp_c", convert=to_number),
    FieldRule("forecast.min_temp_f", "min_temp_f", convert=to_number),
    FieldRule("forecast.sunrise", "sunrise"),
    FieldRule("forecast.sunset", "sunset"),
)

PHONE_RULES = (
    FieldRule("valid", default=False),
    FieldRule("possible", default=False),
    FieldRule("formats.international", "international"),
    FieldRule("formats.national", "national"),
    FieldRule("formats.e164", "e164"),
    FieldRule("country_code"),
    FieldRule("country"),
    FieldRule("number_type", default="UNKNOWN"),
    FieldRule("carrier"),
    FieldRule("location"),
)

SEARCH_RESULT_RULES = (
    FieldRule("title", max_length=300),
    FieldRule("snippet", max_length=SNIPPET_LIMIT, default=""),
    FieldRule("url"),
)

GEOCODE_RULES = (
    FieldRule("location", "display_name"),
    FieldRule("latitude"),
    FieldRule("longitude"),
    FieldRule("type", "place_type"),
    FieldRule("importance"),
    FieldRule("bounding_box", default=[]),
)

REVERSE_GEOCODE_RULES = (
    FieldRule("location", "display_name"),
    FieldRule("address", default={}),
)

TIMEZONE_RULES = (
    FieldRule("timezone", "zone"),
    FieldRule("datetime"),
    FieldRule("utc_offset"),
    FieldRule("day_of_week"),
    FieldRule("day_of_year"),
    FieldRule("week_number"),
)

IP_LOOKUP_RULES = passthrough(
    "ip", "country", "country_code", "region", "city", "zip",
    "latitude", "longitude", "timezone", "isp", "org", "as",
)

ASN_RULES = passthrough("ip", "asn", "asn_name", "description", "country", "prefix", "rir")

WHOIS_RULES = (
    FieldRule("domain"),
    FieldRule("status", default=[]),
    FieldRule("registrar"),
    FieldRule("created"),
    FieldRule("expires"),
    FieldRule("updated"),
    FieldRule("nameservers", default=[]),
)

DNS_RULES = (
    FieldRule("ipv4", default=[]),
    FieldRule("ipv6", default=[]),
)

PING_RULES = (
    FieldRule("host"),
    FieldRule("alive", default=False),
    FieldRule("output", default=[]),
)

APOD_RULES = (
    FieldRule("title"),
    FieldRule("date"),
    FieldRule("explanation", max_length=APOD_EXPLANATION_LIMIT),
    FieldRule("url"),
    FieldRule("hdurl", "hd_url"),
    FieldRule("media_type"),
)

CRYPTO_RULES = (
    FieldRule("symbol", convert=upper),
    FieldRule("id", "coin_id"),
    FieldRule("price_usd"),
    FieldRule("change_24h"),
    FieldRule("market_cap_usd"),
)

CVE_RULES = (
    FieldRule("id", "cve_id"),
    FieldRule("description", max_length=CVE_DESCRIPTION_LIMIT, default=""),
    FieldRule("severity"),
    FieldRule("score"),
    FieldRule("published"),
    FieldRule("modified"),
    FieldRule("references", max_items=CVE_REFERENCE_LIMIT, default=[]),
)

SSL_RULES = (
    FieldRule("subject_cn"),
    FieldRule("issuer"),
    FieldRule("issued", "not_before", convert=to_iso),
    FieldRule("expires", "not_after", convert=to_iso),
    FieldRule("san", default=[]),
)

HTTP_STATUS_RULES = passthrough(
    "url", "status", "status_text", "server", "content_type", "latency_ms", "final_url",
)

SUBNET_RULES = passthrough(
    "network", "broadcast", "mask", "prefix", "first_host", "last_host", "usable_hosts",
)

HASH_RULES = passthrough("hash", "algorithm", "input_length")

BASE64_RULES = passthrough("result", "mode")

TIME_RULES = passthrough("utc", "unix", "local")
