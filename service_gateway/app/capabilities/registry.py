"""
Static capability wiring.

``CHAIN_DEFINITIONS`` lists each capability's providers in priority order;
``HANDLERS`` names the handler class that fronts it. Adapters whose optional
credential is not configured are left out when the chains are built.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type

import httpx

from shared.config import GatewayConfig
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters import (
    Base64Adapter,
    BGPViewASNAdapter,
    ClockAdapter,
    CoinGeckoPriceAdapter,
    ConditionHeuristicAlertsAdapter,
    DNSResolverAdapter,
    DuckDuckGoNewsAdapter,
    DuckDuckGoSearchAdapter,
    HashAdapter,
    HTTPReachabilityAdapter,
    IPApiAdapter,
    LocalPhoneAdapter,
    NasaApodAdapter,
    NominatimReverseAdapter,
    NominatimSearchAdapter,
    NumverifyAdapter,
    NVDCveAdapter,
    NWSAlertsAdapter,
    PingAdapter,
    ProviderAdapter,
    RDAPWhoisAdapter,
    SubnetCalculatorAdapter,
    TLSCertificateAdapter,
    WorldTimeAdapter,
    WorldTimeZonesAdapter,
    WttrWeatherAdapter,
)
from ..aggregation.chain import FallbackChain
from .base import Capability, CapabilityHandler
from .lookup import (
    ApodHandler,
    CryptoHandler,
    CveHandler,
    GeocodeHandler,
    NewsHandler,
    PhoneHandler,
    ReverseGeocodeHandler,
    SearchHandler,
    TimezoneHandler,
    TimezonesHandler,
)
from .network import (
    ASNHandler,
    DNSHandler,
    HTTPStatusHandler,
    IPLookupHandler,
    PingHandler,
    SSLHandler,
    WhoisHandler,
)
from .utilities import Base64Handler, HashHandler, SubnetHandler, TimeHandler
from .weather import WeatherAlertsHandler, WeatherHandler

logger = get_logger("gateway.registry")

CHAIN_DEFINITIONS: Dict[Capability, Tuple[Type[ProviderAdapter], ...]] = {
    Capability.SEARCH: (DuckDuckGoSearchAdapter,),
    Capability.NEWS: (DuckDuckGoNewsAdapter,),
    Capability.WEATHER: (WttrWeatherAdapter,),
    Capability.WEATHER_ALERTS: (NWSAlertsAdapter, ConditionHeuristicAlertsAdapter),
    Capability.TIMEZONE: (WorldTimeAdapter,),
    Capability.TIMEZONES: (WorldTimeZonesAdapter,),
    Capability.GEOCODE: (NominatimSearchAdapter,),
    Capability.REVERSE_GEOCODE: (NominatimReverseAdapter,),
    Capability.IP_LOOKUP: (IPApiAdapter,),
    Capability.PHONE: (LocalPhoneAdapter, NumverifyAdapter),
    Capability.DNS: (DNSResolverAdapter,),
    Capability.PING: (PingAdapter,),
    Capability.APOD: (NasaApodAdapter,),
    Capability.TIME: (ClockAdapter,),
    Capability.HASH: (HashAdapter,),
    Capability.BASE64: (Base64Adapter,),
    Capability.SUBNET: (SubnetCalculatorAdapter,),
    Capability.WHOIS: (RDAPWhoisAdapter,),
    Capability.ASN: (BGPViewASNAdapter,),
    Capability.CRYPTO: (CoinGeckoPriceAdapter,),
    Capability.CVE: (NVDCveAdapter,),
    Capability.SSL: (TLSCertificateAdapter,),
    Capability.HTTP_STATUS: (HTTPReachabilityAdapter,),
}

HANDLERS: Dict[Capability, Type[CapabilityHandler]] = {
    Capability.SEARCH: SearchHandler,
    Capability.NEWS: NewsHandler,
    Capability.WEATHER: WeatherHandler,
    Capability.WEATHER_ALERTS: WeatherAlertsHandler,
    Capability.TIMEZONE: TimezoneHandler,
    Capability.TIMEZONES: TimezonesHandler,
    Capability.GEOCODE: GeocodeHandler,
    Capability.REVERSE_GEOCODE: ReverseGeocodeHandler,
    Capability.IP_LOOKUP: IPLookupHandler,
    Capability.PHONE: PhoneHandler,
    Capability.DNS: DNSHandler,
    Capability.PING: PingHandler,
    Capability.APOD: ApodHandler,
    Capability.TIME: TimeHandler,
    Capability.HASH: HashHandler,
    Capability.BASE64: Base64Handler,
    Capability.SUBNET: SubnetHandler,
    Capability.WHOIS: WhoisHandler,
    Capability.ASN: ASNHandler,
    Capability.CRYPTO: CryptoHandler,
    Capability.CVE: CveHandler,
    Capability.SSL: SSLHandler,
    Capability.HTTP_STATUS: HTTPStatusHandler,
}


def build_chains(
    config: GatewayConfig,
    client: httpx.AsyncClient,
    metrics: Optional[MetricsCollector] = None,
) -> Dict[Capability, FallbackChain]:
    chains: Dict[Capability, FallbackChain] = {}
    for capability, adapter_types in CHAIN_DEFINITIONS.items():
        providers = [adapter(config, client) for adapter in adapter_types if adapter.enabled(config)]
        skipped = [adapter.name for adapter in adapter_types if not adapter.enabled(config)]
        if skipped:
            logger.info("Providers disabled", capability=capability.value, providers=skipped)
        chains[capability] = FallbackChain(capability, providers, metrics=metrics)
    return chains


def build_handlers(
    config: GatewayConfig,
    client: httpx.AsyncClient,
    metrics: Optional[MetricsCollector] = None,
) -> Dict[Capability, CapabilityHandler]:
    """Instantiate every handler over one shared set of chains."""
    chains = build_chains(config, client, metrics)
    return {capability: handler(chains, config) for capability, handler in HANDLERS.items()}
