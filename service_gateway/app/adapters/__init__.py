"""
Provider adapters for the Gateway.

Each adapter wraps one upstream data source (or one local computation) and
answers with a ``ProviderOutcome``. Adapters encapsulate:

- Upstream URLs, request shapes and response-shape knowledge
- A per-call timeout taken from the gateway configuration
- Conversion of every network/parse/timeout error into a failure outcome

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .base import (
    ErrorKind,
    HTTPProviderAdapter,
    OutcomeStatus,
    ProviderAdapter,
    ProviderDataError,
    ProviderOutcome,
    UpstreamRejected,
)
from .geocoding import NominatimReverseAdapter, NominatimSearchAdapter
from .local import Base64Adapter, ClockAdapter, HashAdapter, SubnetCalculatorAdapter
from .network import (
    BGPViewASNAdapter,
    DNSResolverAdapter,
    HTTPReachabilityAdapter,
    IPApiAdapter,
    PingAdapter,
    RDAPWhoisAdapter,
    TLSCertificateAdapter,
)
from .phone import LocalPhoneAdapter, NumverifyAdapter
from .reference import (
    CoinGeckoPriceAdapter,
    NasaApodAdapter,
    NVDCveAdapter,
    WorldTimeAdapter,
    WorldTimeZonesAdapter,
)
from .search import DuckDuckGoNewsAdapter, DuckDuckGoSearchAdapter
from .weather import ConditionHeuristicAlertsAdapter, NWSAlertsAdapter, WttrWeatherAdapter

__all__ = [
    "ErrorKind",
    "HTTPProviderAdapter",
    "OutcomeStatus",
    "ProviderAdapter",
    "ProviderDataError",
    "ProviderOutcome",
    "UpstreamRejected",
    "NominatimReverseAdapter",
    "NominatimSearchAdapter",
    "Base64Adapter",
    "ClockAdapter",
    "HashAdapter",
    "SubnetCalculatorAdapter",
    "BGPViewASNAdapter",
    "DNSResolverAdapter",
    "HTTPReachabilityAdapter",
    "IPApiAdapter",
    "PingAdapter",
    "RDAPWhoisAdapter",
    "TLSCertificateAdapter",
    "LocalPhoneAdapter",
    "NumverifyAdapter",
    "CoinGeckoPriceAdapter",
    "NasaApodAdapter",
    "NVDCveAdapter",
    "WorldTimeAdapter",
    "WorldTimeZonesAdapter",
    "DuckDuckGoNewsAdapter",
    "DuckDuckGoSearchAdapter",
    "ConditionHeuristicAlertsAdapter",
    "NWSAlertsAdapter",
    "WttrWeatherAdapter",
]
