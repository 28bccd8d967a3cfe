"""
Validated request types.

Handlers turn raw path/query/body parameters into one of these frozen
records before any provider is called. Every check raises
:class:`shared.errors.ValidationError`, which the service maps to a 400.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from shared.errors import ValidationError

HOSTNAME_PATTERN = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*\.?$"
)
DOMAIN_PATTERN = re.compile(r"^(?=.{3,253}$)([A-Za-z0-9-]{1,63}\.)+[A-Za-z]{2,63}$")
CVE_PATTERN = re.compile(r"^CVE-\d{4}-\d{4,}$", re.ASCII)
SYMBOL_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]{0,63}$")
REGION_PATTERN = re.compile(r"^[A-Z]{2}$")
OCTET_PATTERN = re.compile(r"\d{1,3}", re.ASCII)

HASH_ALGORITHMS = ("md5", "sha1", "sha256", "sha512")
BASE64_MODES = ("encode", "decode")
DEFAULT_NUM_RESULTS = 5


@dataclass(frozen=True)
class EmptyRequest:
    pass


@dataclass(frozen=True)
class QueryRequest:
    query: str
    num_results: int = DEFAULT_NUM_RESULTS


@dataclass(frozen=True)
class LocationRequest:
    location: str


@dataclass(frozen=True)
class PointRequest:
    """A named location already resolved to coordinates."""

    location: str
    latitude: float
    longitude: float


@dataclass(frozen=True)
class CoordinatesRequest:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class ZoneRequest:
    zone: str


@dataclass(frozen=True)
class IPRequest:
    ip: str


@dataclass(frozen=True)
class HostRequest:
    host: str


@dataclass(frozen=True)
class HostnameRequest:
    hostname: str


@dataclass(frozen=True)
class PhoneRequest:
    number: str
    region: str
    e164: str


@dataclass(frozen=True)
class DomainRequest:
    domain: str


@dataclass(frozen=True)
class SymbolRequest:
    symbol: str


@dataclass(frozen=True)
class CVERequest:
    cve_id: str


@dataclass(frozen=True)
class TLSRequest:
    hostname: str
    port: int = 443


@dataclass(frozen=True)
class URLRequest:
    url: str


@dataclass(frozen=True)
class SubnetRequest:
    cidr: str
    address: str
    prefix: int


@dataclass(frozen=True)
class HashRequest:
    text: str
    algorithm: str = "sha256"


@dataclass(frozen=True)
class Base64Request:
    text: str
    mode: str = "encode"


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------

def require_text(params: Mapping[str, Any], key: str, *, strip: bool = True) -> str:
    """Return a non-empty string parameter or raise a 400."""
    value = params.get(key)
    if not isinstance(value, str):
        raise ValidationError(f"{key} is required")
    text = value.strip() if strip else value
    if not text:
        raise ValidationError(f"{key} is required")
    return text


def parse_int(value: Any, name: str, *, default: Optional[int] = None) -> int:
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{name} is required")
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer", details=f"got {value!r}")


def parse_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number", details=f"got {value!r}")


def validate_num_results(value: Any, maximum: int) -> int:
    count = parse_int(value, "num_results", default=DEFAULT_NUM_RESULTS)
    if count < 1:
        raise ValidationError("num_results must be at least 1")
    return min(count, maximum)


def validate_coordinates(latitude: Any, longitude: Any) -> CoordinatesRequest:
    lat = parse_float(latitude, "lat")
    lon = parse_float(longitude, "lon")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError("lat must be between -90 and 90")
    if not -180.0 <= lon <= 180.0:
        raise ValidationError("lon must be between -180 and 180")
    return CoordinatesRequest(latitude=lat, longitude=lon)


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def validate_host(value: str, name: str = "host") -> str:
    """Hostname or literal IP address."""
    host = value.strip()
    if is_ip_address(host) or HOSTNAME_PATTERN.match(host):
        return host
    raise ValidationError(f"Invalid {name}", details=f"got {value!r}")


def validate_ip(value: str) -> str:
    address = value.strip()
    if not is_ip_address(address):
        raise ValidationError("Invalid IP address", details=f"got {value!r}")
    return address


def validate_domain(value: str) -> str:
    domain = value.strip().lower().rstrip(".")
    if not DOMAIN_PATTERN.match(domain):
        raise ValidationError("Invalid domain", details=f"got {value!r}")
    return domain


def validate_cve_id(value: str) -> str:
    cve_id = value.strip().upper()
    if not CVE_PATTERN.match(cve_id):
        raise ValidationError("Invalid CVE ID format", details="expected CVE-YYYY-NNNN")
    return cve_id


def validate_symbol(value: str) -> str:
    symbol = value.strip().lower()
    if not SYMBOL_PATTERN.match(symbol):
        raise ValidationError("Invalid symbol", details=f"got {value!r}")
    return symbol


def validate_port(value: Any) -> int:
    port = parse_int(value, "port", default=443)
    if not 1 <= port <= 65535:
        raise ValidationError("port must be between 1 and 65535")
    return port


def validate_url(value: str) -> str:
    url = value.strip()
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValidationError("url must be an absolute http or https URL", details=f"got {value!r}")
    return url


def validate_region(value: Any) -> str:
    region = (value or "US").strip().upper() if isinstance(value, str) or value is None else ""
    if not REGION_PATTERN.match(region):
        raise ValidationError("country must be a two-letter region code", details=f"got {value!r}")
    return region


def parse_cidr(value: str) -> SubnetRequest:
    """Dotted-quad IPv4 address with a ``/prefix`` between 0 and 32."""
    cidr = value.strip()
    address, separator, prefix_text = cidr.partition("/")
    if not separator:
        raise ValidationError("Invalid CIDR", details="expected a.b.c.d/prefix")

    octets = address.split(".")
    if len(octets) != 4 or not all(OCTET_PATTERN.fullmatch(octet) and int(octet) <= 255 for octet in octets):
        raise ValidationError("Invalid CIDR", details="address must be four octets between 0 and 255")
    if not OCTET_PATTERN.fullmatch(prefix_text) or int(prefix_text) > 32:
        raise ValidationError("Invalid CIDR", details="prefix must be an integer between 0 and 32")

    normalized = ".".join(str(int(octet)) for octet in octets)
    return SubnetRequest(cidr=cidr, address=normalized, prefix=int(prefix_text))


def validate_algorithm(value: Any) -> str:
    algorithm = (value or "sha256").lower() if isinstance(value, str) or value is None else ""
    if algorithm not in HASH_ALGORITHMS:
        raise ValidationError("Unsupported algorithm", details=f"supported: {', '.join(HASH_ALGORITHMS)}")
    return algorithm


def validate_mode(value: Any) -> str:
    mode = (value or "encode").lower() if isinstance(value, str) or value is None else ""
    if mode not in BASE64_MODES:
        raise ValidationError("mode must be encode or decode")
    return mode
