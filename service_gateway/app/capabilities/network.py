"""
Network capabilities: IP and ASN lookups, WHOIS, DNS, ping, HTTP
reachability and TLS certificate checks.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, Mapping

from shared.clock import utc_now
from shared.errors import ValidationError

from ..aggregation.chain import ChainResult
from ..aggregation.normalizer import (
    ASN_RULES,
    DNS_RULES,
    HTTP_STATUS_RULES,
    IP_LOOKUP_RULES,
    PING_RULES,
    SSL_RULES,
    WHOIS_RULES,
)
from .base import Capability, CapabilityHandler, upstream_error
from .requests import (
    DomainRequest,
    HostnameRequest,
    HostRequest,
    IPRequest,
    TLSRequest,
    URLRequest,
    require_text,
    validate_domain,
    validate_host,
    validate_ip,
    validate_port,
    validate_url,
)


class IPLookupHandler(CapabilityHandler):
    capability = Capability.IP_LOOKUP
    rules = IP_LOOKUP_RULES
    not_found_message = "No data for address"
    failure_message = "IP lookup failed"

    def validate(self, params: Mapping[str, Any]) -> IPRequest:
        return IPRequest(ip=validate_host(require_text(params, "ip"), "IP address or hostname"))

    def on_exhausted(self, request: IPRequest, result: ChainResult) -> None:
        # ip-api refuses private and reserved ranges with a readable message.
        last = result.last_failure
        if last is not None and last.rejected and last.detail:
            raise ValidationError(last.detail)
        super().on_exhausted(request, result)


class ASNHandler(CapabilityHandler):
    capability = Capability.ASN
    rules = ASN_RULES
    not_found_message = "No routing data for address"
    failure_message = "ASN lookup failed"

    def validate(self, params: Mapping[str, Any]) -> IPRequest:
        return IPRequest(ip=validate_ip(require_text(params, "ip")))


class WhoisHandler(CapabilityHandler):
    capability = Capability.WHOIS
    rules = WHOIS_RULES
    not_found_message = "Domain not found"
    failure_message = "WHOIS lookup failed"

    def validate(self, params: Mapping[str, Any]) -> DomainRequest:
        return DomainRequest(domain=validate_domain(require_text(params, "domain")))


class DNSHandler(CapabilityHandler):
    """A and AAAA lookups. A name that resolves to nothing is still a success."""

    capability = Capability.DNS
    rules = DNS_RULES
    empty_is_valid = True
    failure_message = "DNS lookup failed"

    def validate(self, params: Mapping[str, Any]) -> HostnameRequest:
        return HostnameRequest(hostname=validate_host(require_text(params, "hostname"), "hostname"))

    def normalize(self, request: HostnameRequest, result: ChainResult) -> Dict[str, Any]:
        body = {"hostname": request.hostname}
        body.update(self.normalizer.normalize(result.data or {}))
        return body


class PingHandler(CapabilityHandler):
    """Reports an unreachable or unpingable host as ``alive: false`` rather than an error."""

    capability = Capability.PING
    rules = PING_RULES
    empty_is_valid = True

    def validate(self, params: Mapping[str, Any]) -> HostRequest:
        return HostRequest(host=validate_host(require_text(params, "host")))

    def on_exhausted(self, request: HostRequest, result: ChainResult) -> None:
        return None

    def normalize(self, request: HostRequest, result: ChainResult) -> Dict[str, Any]:
        if result.exhausted:
            last = result.last_failure
            return {
                "host": request.host,
                "alive": False,
                "error": last.reason.value if last is not None else "no reply",
            }
        return self.normalizer.normalize(result.data)


class HTTPStatusHandler(CapabilityHandler):
    capability = Capability.HTTP_STATUS
    rules = HTTP_STATUS_RULES
    failure_message = "HTTP check failed"

    def validate(self, params: Mapping[str, Any]) -> URLRequest:
        return URLRequest(url=validate_url(require_text(params, "url")))


class SSLHandler(CapabilityHandler):
    capability = Capability.SSL
    rules = SSL_RULES
    failure_message = "SSL check failed"

    def validate(self, params: Mapping[str, Any]) -> TLSRequest:
        return TLSRequest(
            hostname=validate_host(require_text(params, "hostname"), "hostname"),
            port=validate_port(params.get("port")),
        )

    def on_exhausted(self, request: TLSRequest, result: ChainResult) -> None:
        if result.saw_empty:
            raise ValidationError("No certificate returned", details=f"{request.hostname}:{request.port}")
        raise upstream_error(self.failure_message, result)

    def normalize(self, request: TLSRequest, result: ChainResult) -> Dict[str, Any]:
        days_remaining = remaining_days(result.data.get("not_after"))
        body = {
            "hostname": request.hostname,
            "port": request.port,
            "valid": days_remaining is not None and days_remaining > 0,
            "days_remaining": days_remaining,
        }
        body.update(self.normalizer.normalize(result.data))
        return body


def remaining_days(expires: Any) -> Any:
    """Whole days until ``expires``; negative once the certificate has lapsed."""
    if not isinstance(expires, datetime):
        return None
    return math.floor((expires - utc_now()).total_seconds() / 86400)
