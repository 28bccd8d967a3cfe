"""
Unit tests for Gateway provider adapters.
"""

import socket
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from service_gateway.app.adapters import (
    BGPViewASNAdapter,
    ConditionHeuristicAlertsAdapter,
    DNSResolverAdapter,
    IPApiAdapter,
    LocalPhoneAdapter,
    NominatimSearchAdapter,
    NumverifyAdapter,
    NVDCveAdapter,
    NWSAlertsAdapter,
    RDAPWhoisAdapter,
    TLSCertificateAdapter,
    WorldTimeAdapter,
    WttrWeatherAdapter,
)
from service_gateway.app.adapters.base import ErrorKind, OutcomeStatus
from service_gateway.app.adapters.search import DuckDuckGoSearchAdapter, parse_results
from service_gateway.app.capabilities.requests import (
    CVERequest,
    DomainRequest,
    HostnameRequest,
    IPRequest,
    LocationRequest,
    PhoneRequest,
    PointRequest,
    QueryRequest,
    ZoneRequest,
)
from shared.test_helpers import ProviderPayloadFactory, TestEnvironment, json_response, text_response

SEARCH_HTML = """
<div class="result">
  <h2 class="result__title"><a>Python Release 3.13</a></h2>
  <a class="result__snippet">The <b>latest</b> release of Python.</a>
  <a class="result__url">www.python.org/downloads</a>
</div>
<div class="result">
  <h2 class="result__title"><a>No url here</a></h2>
</div>
<div class="result">
  <h2 class="result__title"><a>Python docs</a></h2>
  <a class="result__url">docs.python.org</a>
</div>
"""


@pytest.fixture
def config():
    return TestEnvironment.get_mock_config()


@pytest.fixture
def http_client():
    client = MagicMock(spec=httpx.AsyncClient)
    client.get = AsyncMock()
    client.head = AsyncMock()
    return client


class TestOutcomeClassification:
    """Errors raised inside fetch become failure outcomes."""

    @pytest.mark.asyncio
    async def test_upstream_5xx(self, config, http_client):
        http_client.get.return_value = json_response("https://nominatim.test/search", {}, status_code=502)
        adapter = NominatimSearchAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Paris"))

        assert outcome.status is OutcomeStatus.FAILURE
        assert outcome.reason is ErrorKind.UPSTREAM_5XX
        assert outcome.upstream_status == 502

    @pytest.mark.asyncio
    async def test_upstream_4xx(self, config, http_client):
        http_client.get.return_value = json_response("https://nominatim.test/search", {}, status_code=429)
        adapter = NominatimSearchAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Paris"))

        assert outcome.reason is ErrorKind.UPSTREAM_4XX

    @pytest.mark.asyncio
    async def test_network_error(self, config, http_client):
        http_client.get.side_effect = httpx.ConnectError("connection refused")
        adapter = NominatimSearchAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Paris"))

        assert outcome.reason is ErrorKind.NETWORK

    @pytest.mark.asyncio
    async def test_transport_timeout(self, config, http_client):
        http_client.get.side_effect = httpx.ReadTimeout("slow")
        adapter = NominatimSearchAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Paris"))

        assert outcome.reason is ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_unparseable(self, config, http_client):
        http_client.get.return_value = json_response("https://nominatim.test/search", {"not": "a list"})
        adapter = NominatimSearchAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Paris"))

        assert outcome.reason is ErrorKind.UNPARSEABLE

    @pytest.mark.asyncio
    async def test_no_match_is_empty(self, config, http_client):
        http_client.get.return_value = json_response("https://nominatim.test/search", [])
        adapter = NominatimSearchAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Atlantis"))

        assert outcome.status is OutcomeStatus.EMPTY


class TestGeocodingAndWeather:
    """Neutral records from geocoding and weather upstreams."""

    @pytest.mark.asyncio
    async def test_nominatim_record(self, config, http_client):
        http_client.get.return_value = json_response(
            "https://nominatim.test/search", ProviderPayloadFactory.nominatim_place()
        )
        adapter = NominatimSearchAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Washington DC"))

        assert outcome.usable
        assert outcome.data["latitude"] == pytest.approx(38.8977)
        assert outcome.data["longitude"] == pytest.approx(-77.0365)
        assert outcome.data["bounding_box"][0] == pytest.approx(38.79)

    @pytest.mark.asyncio
    async def test_wttr_conditions(self, config, http_client):
        http_client.get.return_value = json_response("https://wttr.test", ProviderPayloadFactory.wttr_report())
        adapter = WttrWeatherAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Washington"))

        assert outcome.data["condition"] == "Partly cloudy"
        assert outcome.data["area_name"] == "Washington"
        assert outcome.data["temp_c"] == "18"
        assert outcome.data["sunrise"] == "07:14 AM"

    @pytest.mark.asyncio
    async def test_wttr_unknown_location_is_empty(self, config, http_client):
        http_client.get.return_value = json_response("https://wttr.test", {"error": "Unknown location"}, status_code=404)
        adapter = WttrWeatherAdapter(config, http_client)

        outcome = await adapter.call(LocationRequest(location="Nowhereville"))

        assert outcome.status is OutcomeStatus.EMPTY

    @pytest.mark.asyncio
    async def test_nws_alerts_use_point_and_user_agent(self, config, http_client):
        http_client.get.return_value = json_response("https://nws.test", ProviderPayloadFactory.nws_alerts(count=2))
        adapter = NWSAlertsAdapter(config, http_client)

        outcome = await adapter.call(PointRequest(location="Washington", latitude=38.9, longitude=-77.0))

        assert len(outcome.data) == 2
        assert outcome.data[0]["event"] == "Flood Warning"
        kwargs = http_client.get.call_args.kwargs
        assert kwargs["params"] == {"point": "38.9,-77.0"}
        assert kwargs["headers"]["User-Agent"].endswith("(weather-alerts)")

    @pytest.mark.asyncio
    async def test_nws_without_features_is_empty(self, config, http_client):
        http_client.get.return_value = json_response("https://nws.test", {"features": []})
        adapter = NWSAlertsAdapter(config, http_client)

        outcome = await adapter.call(PointRequest(location="Paris", latitude=48.8, longitude=2.3))

        assert outcome.status is OutcomeStatus.EMPTY

    @pytest.mark.asyncio
    async def test_heuristic_flags_storm_conditions(self, config, http_client):
        http_client.get.return_value = json_response(
            "https://wttr.test", ProviderPayloadFactory.wttr_report("Thundery outbreaks possible")
        )
        adapter = ConditionHeuristicAlertsAdapter(config, http_client)

        outcome = await adapter.call(PointRequest(location="Miami", latitude=25.7, longitude=-80.2))

        assert outcome.usable
        alert = outcome.data[0]
        assert alert["event"] == "Severe Weather: Thundery outbreaks possible"
        assert alert["severity"] == "Severe"
        assert alert["urgency"] == "Immediate"
        assert alert["alert_id"].startswith("wttr-")
        assert alert["expires"] is None
        assert "Miami" in alert["description"]

    @pytest.mark.asyncio
    async def test_heuristic_ignores_calm_conditions(self, config, http_client):
        http_client.get.return_value = json_response("https://wttr.test", ProviderPayloadFactory.wttr_report("Sunny"))
        adapter = ConditionHeuristicAlertsAdapter(config, http_client)

        outcome = await adapter.call(PointRequest(location="Miami", latitude=25.7, longitude=-80.2))

        assert outcome.status is OutcomeStatus.EMPTY


class TestPhoneAdapters:
    """Offline parsing and paid enrichment."""

    @pytest.mark.asyncio
    async def test_local_metadata_is_partial(self, config):
        adapter = LocalPhoneAdapter(config)

        outcome = await adapter.call(PhoneRequest(number="+1 650-253-0000", region="US", e164="+16502530000"))

        assert outcome.usable
        assert outcome.partial
        assert outcome.data["e164"] == "+16502530000"
        assert outcome.data["country_code"] == "1"
        assert outcome.data["country"] == "US"

    def test_numverify_requires_credential(self):
        assert not NumverifyAdapter.enabled(TestEnvironment.get_mock_config())
        assert not NumverifyAdapter.enabled(TestEnvironment.get_mock_config(numverify_api_key="  "))
        assert NumverifyAdapter.enabled(TestEnvironment.get_mock_config(numverify_api_key="secret"))

    @pytest.mark.asyncio
    async def test_numverify_enrichment(self, http_client):
        config = TestEnvironment.get_mock_config(numverify_api_key="secret")
        http_client.get.return_value = json_response(
            "http://apilayer.test/validate", ProviderPayloadFactory.numverify_result()
        )
        adapter = NumverifyAdapter(config, http_client)

        outcome = await adapter.call(PhoneRequest(number="2025550143", region="US", e164="+12025550143"))

        assert outcome.data == {
            "carrier": "Verizon Wireless",
            "location": "Washington",
            "number_type": "MOBILE",
        }
        params = http_client.get.call_args.kwargs["params"]
        assert params["number"] == "12025550143"
        assert params["access_key"] == "secret"

    @pytest.mark.asyncio
    async def test_numverify_error_payload_is_unparseable(self, http_client):
        config = TestEnvironment.get_mock_config(numverify_api_key="secret")
        http_client.get.return_value = json_response(
            "http://apilayer.test/validate", {"success": False, "error": {"code": 101}}
        )
        adapter = NumverifyAdapter(config, http_client)

        outcome = await adapter.call(PhoneRequest(number="2025550143", region="US", e164="+12025550143"))

        assert outcome.reason is ErrorKind.UNPARSEABLE


class TestSearchAdapter:
    """DuckDuckGo HTML parsing."""

    def test_parse_results_skips_incomplete_entries(self):
        results = parse_results(SEARCH_HTML, limit=10)

        assert [result["title"] for result in results] == ["Python Release 3.13", "Python docs"]
        assert results[0]["snippet"] == "The latest release of Python."
        assert results[1]["snippet"] == ""

    @pytest.mark.asyncio
    async def test_search_uses_browser_user_agent(self, config, http_client):
        http_client.get.return_value = text_response("https://html.duckduckgo.test/html/", SEARCH_HTML)
        adapter = DuckDuckGoSearchAdapter(config, http_client)

        outcome = await adapter.call(QueryRequest(query="python", num_results=1))

        assert len(outcome.data) == 1
        assert http_client.get.call_args.kwargs["headers"]["User-Agent"] == config.search_user_agent


class TestReferenceAndNetworkAdapters:
    """Lookup adapters with not-found handling."""

    @pytest.mark.asyncio
    async def test_unknown_timezone_is_empty(self, config, http_client):
        http_client.get.return_value = json_response("http://worldtime.test/api/timezone/Mars/Base", {}, status_code=404)
        adapter = WorldTimeAdapter(config, http_client)

        outcome = await adapter.call(ZoneRequest(zone="Mars/Base"))

        assert outcome.status is OutcomeStatus.EMPTY

    @pytest.mark.asyncio
    async def test_nvd_prefers_cvss_31(self, config, http_client):
        http_client.get.return_value = json_response("https://nvd.test", ProviderPayloadFactory.nvd_record())
        adapter = NVDCveAdapter(config, http_client)

        outcome = await adapter.call(CVERequest(cve_id="CVE-2021-44228"))

        assert outcome.data["score"] == 10.0
        assert outcome.data["severity"] == "CRITICAL"
        assert outcome.data["description"].startswith("Apache Log4j2")
        assert len(outcome.data["references"]) == 8

    @pytest.mark.asyncio
    async def test_nvd_unknown_id_is_empty(self, config, http_client):
        http_client.get.return_value = json_response("https://nvd.test", {"vulnerabilities": []})
        adapter = NVDCveAdapter(config, http_client)

        outcome = await adapter.call(CVERequest(cve_id="CVE-1999-99999"))

        assert outcome.status is OutcomeStatus.EMPTY

    @pytest.mark.asyncio
    async def test_ip_api_rejection_is_client_class(self, config, http_client):
        http_client.get.return_value = json_response(
            "http://ip-api.test/json/10.0.0.1", {"status": "fail", "message": "private range", "query": "10.0.0.1"}
        )
        adapter = IPApiAdapter(config, http_client)

        outcome = await adapter.call(IPRequest(ip="10.0.0.1"))

        assert outcome.reason is ErrorKind.UPSTREAM_4XX
        assert outcome.detail == "private range"
        assert outcome.rejected

    @pytest.mark.asyncio
    async def test_ip_api_http_error_is_not_a_rejection(self, config, http_client):
        http_client.get.return_value = json_response("http://ip-api.test/json/8.8.8.8", {}, status_code=429)
        adapter = IPApiAdapter(config, http_client)

        outcome = await adapter.call(IPRequest(ip="8.8.8.8"))

        assert outcome.reason is ErrorKind.UPSTREAM_4XX
        assert outcome.upstream_status == 429
        assert not outcome.rejected

    @pytest.mark.asyncio
    async def test_bgpview_without_prefixes_is_empty(self, config, http_client):
        http_client.get.return_value = json_response("https://bgpview.test", {"data": {"prefixes": []}})
        adapter = BGPViewASNAdapter(config, http_client)

        outcome = await adapter.call(IPRequest(ip="192.0.2.1"))

        assert outcome.status is OutcomeStatus.EMPTY

    @pytest.mark.asyncio
    async def test_rdap_registrar_from_vcard(self, config, http_client):
        http_client.get.return_value = json_response(
            "https://rdap.test/domain/example.com",
            {
                "ldhName": "EXAMPLE.COM",
                "status": ["client transfer prohibited"],
                "events": [
                    {"eventAction": "registration", "eventDate": "1995-08-14T04:00:00Z"},
                    {"eventAction": "expiration", "eventDate": "2027-08-13T04:00:00Z"},
                ],
                "entities": [
                    {
                        "roles": ["registrar"],
                        "vcardArray": ["vcard", [["version", {}, "text", "4.0"], ["fn", {}, "text", "RESERVED-IANA"]]],
                    }
                ],
                "nameservers": [{"ldhName": "A.IANA-SERVERS.NET"}],
            },
        )
        adapter = RDAPWhoisAdapter(config, http_client)

        outcome = await adapter.call(DomainRequest(domain="example.com"))

        assert outcome.data["domain"] == "example.com"
        assert outcome.data["registrar"] == "RESERVED-IANA"
        assert outcome.data["created"] == "1995-08-14T04:00:00Z"
        assert outcome.data["nameservers"] == ["A.IANA-SERVERS.NET"]

    @pytest.mark.asyncio
    async def test_dns_partial_family_failure(self, config):
        adapter = DNSResolverAdapter(config)

        async def resolve(hostname, family):
            if family == socket.AF_INET:
                return ["93.184.216.34"]
            raise OSError("no AAAA")

        adapter._resolve = resolve

        outcome = await adapter.call(HostnameRequest(hostname="example.com"))

        assert outcome.data == {"ipv4": ["93.184.216.34"], "ipv6": []}

    def test_tls_certificate_description(self):
        from cryptography import x509
        from cryptography.hazmat.primitives import hashes
        from cryptography.hazmat.primitives.asymmetric import ec
        from cryptography.x509.oid import NameOID

        key = ec.generate_private_key(ec.SECP256R1())
        now = datetime.now(timezone.utc)
        subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "example.com")])
        issuer = x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Example CA")])
        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(issuer)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(days=1))
            .not_valid_after(now + timedelta(days=30))
            .add_extension(
                x509.SubjectAlternativeName([x509.DNSName("example.com"), x509.DNSName("www.example.com")]),
                critical=False,
            )
            .sign(key, hashes.SHA256())
        )

        described = TLSCertificateAdapter._describe(cert)

        assert described["subject_cn"] == "example.com"
        assert described["issuer"] == "Example CA"
        assert described["san"] == ["example.com", "www.example.com"]
        assert described["not_after"] > now
