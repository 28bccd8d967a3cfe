"""
Capability handler base.

A handler is the entry point for one capability. Every request moves through
the same phases::

    Validating -> Fetching -> Normalizing -> Responding

``Fetching`` may run more than one chain (weather alerts geocode first) and
each chain may step through several providers. Validation problems become
400s; chain exhaustion becomes an empty success, a 404 or a 500 depending on
the capability; anything unexpected becomes a generic 500.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence

from shared.clock import utc_now_iso
from shared.config import GatewayConfig
from shared.errors import (
    GatewayError,
    InternalFault,
    NotFoundError,
    ProviderDataUnusable,
    ProviderTimeout,
    ProviderUnavailable,
    UpstreamError,
)
from shared.logging import get_logger, reset_capability, set_capability

from ..adapters.base import ErrorKind
from ..aggregation.chain import ChainResult, FallbackChain
from ..aggregation.normalizer import FieldRule, Normalizer


class Capability(str, Enum):
    """Closed set of gateway capabilities."""

    SEARCH = "search"
    NEWS = "news"
    WEATHER = "weather"
    WEATHER_ALERTS = "weather-alerts"
    TIMEZONE = "timezone"
    TIMEZONES = "timezones"
    GEOCODE = "geocode"
    REVERSE_GEOCODE = "reverse-geocode"
    IP_LOOKUP = "ip-lookup"
    PHONE = "phone"
    DNS = "dns"
    PING = "ping"
    APOD = "apod"
    TIME = "time"
    HASH = "hash"
    BASE64 = "base64"
    SUBNET = "subnet"
    WHOIS = "whois"
    ASN = "asn"
    CRYPTO = "crypto"
    CVE = "cve"
    SSL = "ssl"
    HTTP_STATUS = "http-status"


def upstream_error(message: str, result: ChainResult) -> UpstreamError:
    """Pick the provider-class error for an exhausted chain."""
    last = result.last_failure
    if last is None:
        return ProviderDataUnusable(message, details="no provider returned data")

    details = f"{last.provider}: {last.reason.value}"
    if last.reason is ErrorKind.TIMEOUT:
        return ProviderTimeout(message, details=details)
    if last.reason in (ErrorKind.NETWORK, ErrorKind.UPSTREAM_5XX):
        return ProviderUnavailable(message, details=details)
    return ProviderDataUnusable(message, details=details)


class CapabilityHandler:
    """Validate, run the capability's chain, normalize, wrap the envelope."""

    capability: Capability
    rules: Sequence[FieldRule] = ()
    empty_is_valid: bool = False
    not_found_message: Optional[str] = None
    failure_message: str = "Lookup failed"

    def __init__(self, chains: Mapping[Capability, FallbackChain], config: GatewayConfig):
        self.chains = chains
        self.chain = chains[self.capability]
        self.config = config
        self.normalizer = Normalizer(self.rules)
        self.logger = get_logger(f"gateway.capabilities.{self.capability.value}")

    async def handle(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        """Run one request through all phases and return the success envelope."""
        token = set_capability(self.capability.value)
        try:
            return await self._run(params)
        finally:
            reset_capability(token)

    async def _run(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        try:
            request = self.validate(params)
            self.logger.debug("Request validated")

            result = await self.fetch(request)
            if result.exhausted:
                self.on_exhausted(request, result)

            body = self.normalize(request, result)
        except GatewayError:
            raise
        except Exception as exc:
            self.logger.error(
                "Capability handler fault",
                error=str(exc),
                exc_info=True,
            )
            raise InternalFault() from exc

        return self.respond(body)

    def validate(self, params: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    async def fetch(self, request: Any) -> ChainResult:
        return await self.chain.run(request)

    def on_exhausted(self, request: Any, result: ChainResult) -> None:
        """Decide what an exhausted chain means for this capability.

        Returning lets normalization proceed with no data; raising ends the
        request with that error.
        """
        if result.saw_empty:
            if self.empty_is_valid:
                return
            if self.not_found_message:
                raise NotFoundError(self.not_found_message)
        raise upstream_error(self.failure_message, result)

    def normalize(self, request: Any, result: ChainResult) -> Dict[str, Any]:
        return self.normalizer.normalize(result.data or {})

    def respond(self, body: Dict[str, Any]) -> Dict[str, Any]:
        body["timestamp"] = utc_now_iso()
        return body
