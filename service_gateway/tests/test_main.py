"""
Unit tests for Gateway main service.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from service_gateway.app.aggregation.chain import FallbackChain
from service_gateway.app.capabilities import Capability
from service_gateway.app.main import GatewayService, create_app
from shared.errors import NotFoundError, ProviderUnavailable, ValidationError
from shared.test_helpers import StubAdapter, TestEnvironment


class TestGatewayService:
    """Test cases for GatewayService."""

    @pytest.fixture
    def gateway_service(self):
        """Create GatewayService instance."""
        return GatewayService(config=TestEnvironment.get_mock_config())

    @pytest.fixture
    def client(self, gateway_service):
        """Create test client."""
        return TestClient(gateway_service.app)

    def _stub_chain(self, service, capability, *providers):
        chain = FallbackChain(capability, list(providers), metrics=service.metrics)
        service.handlers[capability].chain = chain
        service.handlers[capability].chains = {**service.handlers[capability].chains, capability: chain}

    def test_create_app_exposes_service(self):
        app = create_app()
        assert isinstance(app.state.gateway_service, GatewayService)

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gateway"
        assert data["message"] == "Agent Tools Gateway"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gateway"
        assert data["status"] == "ok"
        assert data["uptime_seconds"] >= 0
        assert data["timestamp"].endswith("Z")

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-42"})
        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_is_generated(self, client):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]

    def test_metrics_endpoint(self, client):
        client.get("/health")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text
        assert "provider_calls_total" in response.text

    def test_endpoint_listing(self, client):
        response = client.get("/api/endpoints")
        assert response.status_code == 200
        data = response.json()
        paths = {route["path"] for route in data["routes"]}
        assert {"/api/weather-alerts/{location}", "/api/phone/{number}", "/api/subnet", "/api/ssl/{hostname}"} <= paths
        assert "/metrics" not in paths
        assert data["count"] == len(data["routes"])

    def test_hash_endpoint(self, client):
        response = client.post("/api/hash", json={"text": "hello", "algorithm": "sha256"})
        assert response.status_code == 200
        assert response.json()["hash"] == "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"

    def test_hash_unsupported_algorithm(self, client):
        response = client.post("/api/hash", json={"text": "hello", "algorithm": "whirlpool"})
        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["error"]
        assert "sha256" in data["details"]

    def test_base64_round_trip(self, client):
        encoded = client.post("/api/base64", json={"text": "agent tools", "mode": "encode"}).json()
        decoded = client.post("/api/base64", json={"text": encoded["result"], "mode": "decode"}).json()
        assert decoded["result"] == "agent tools"

    def test_base64_invalid_decode(self, client):
        response = client.post("/api/base64", json={"text": "%%%", "mode": "decode"})
        assert response.status_code == 400

    def test_subnet_endpoint(self, client):
        response = client.post("/api/subnet", json={"cidr": "192.168.1.0/24"})
        assert response.status_code == 200
        data = response.json()
        assert data["usable_hosts"] == 254
        assert data["first_host"] == "192.168.1.1"
        assert "timestamp" in data

    def test_invalid_json_body(self, client):
        response = client.post("/api/subnet", content=b"{not json", headers={"content-type": "application/json"})
        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_non_object_body(self, client):
        response = client.post("/api/hash", json=["hello"])
        assert response.status_code == 400

    def test_time_endpoint(self, client):
        data = client.get("/api/time").json()
        assert {"utc", "unix", "local", "timestamp"} <= set(data)

    def test_weather_alerts_endpoint(self, client, gateway_service):
        geocode = FallbackChain(
            Capability.GEOCODE,
            [StubAdapter("nominatim", {"display_name": "Miami", "latitude": 25.7, "longitude": -80.2})],
        )
        gateway_service.handlers[Capability.WEATHER_ALERTS].geocode_chain = geocode
        self._stub_chain(
            gateway_service,
            Capability.WEATHER_ALERTS,
            StubAdapter("nws", []),
            StubAdapter("wttr-heuristic", [{"alert_id": "wttr-1", "event": "Severe Weather: Thunderstorm"}]),
        )

        response = client.get("/api/weather-alerts/Miami")

        assert response.status_code == 200
        data = response.json()
        assert data["location"] == "Miami"
        assert data["alerts"][0]["title"] == "Severe Weather: Thunderstorm"

    def test_weather_alerts_unknown_location(self, client, gateway_service):
        gateway_service.handlers[Capability.WEATHER_ALERTS].handle = AsyncMock(
            side_effect=NotFoundError("Location not found", extra={"alerts": []})
        )

        response = client.get("/api/weather-alerts/Atlantis")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "Location not found"
        assert data["code"] == "NOT_FOUND"
        assert data["alerts"] == []

    def test_phone_unparseable(self, client):
        response = client.get("/api/phone/not-a-number", params={"country": "US"})
        assert response.status_code == 400
        data = response.json()
        assert data["valid"] is False
        assert data["input"] == "not-a-number"
        assert "timestamp" in data

    def test_phone_local_metadata(self, client):
        response = client.get("/api/phone/6502530000")
        assert response.status_code == 200
        data = response.json()
        assert data["formats"]["e164"] == "+16502530000"
        assert data["source"] == "local"

    def test_upstream_failure_is_generic_500(self, client, gateway_service):
        gateway_service.handlers[Capability.CVE].handle = AsyncMock(
            side_effect=ProviderUnavailable("CVE lookup failed", details="nvd: upstream_5xx")
        )

        response = client.get("/api/cve/CVE-2021-44228")

        assert response.status_code == 500
        assert response.json() == {
            "error": "CVE lookup failed",
            "details": "nvd: upstream_5xx",
            "code": "PROVIDER_UNAVAILABLE",
        }

    def test_unexpected_exception_is_internal_error(self, gateway_service):
        gateway_service.handlers[Capability.APOD].handle = AsyncMock(side_effect=RuntimeError("secret internals"))
        client = TestClient(gateway_service.app, raise_server_exceptions=False)

        response = client.get("/api/apod")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Internal server error"
        assert "secret" not in response.text

    def test_caller_ip_defaults_from_forwarded_header(self, client, gateway_service):
        handler = gateway_service.handlers[Capability.IP_LOOKUP]
        handler.handle = AsyncMock(return_value={"ip": "203.0.113.9", "timestamp": "2026-10-19T00:00:00.000Z"})

        response = client.get("/api/ip", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

        assert response.status_code == 200
        handler.handle.assert_awaited_once_with({"ip": "203.0.113.9"})

    def test_timezone_path_keeps_slashes(self, client, gateway_service):
        handler = gateway_service.handlers[Capability.TIMEZONE]
        handler.handle = AsyncMock(side_effect=ValidationError("stop"))

        client.get("/api/timezone/America/Argentina/Buenos_Aires")

        handler.handle.assert_awaited_once_with({"zone": "America/Argentina/Buenos_Aires"})

    def test_unknown_route_uses_error_envelope(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert response.json()["code"] == "HTTP_ERROR"

    def test_ping_failure_is_not_an_error(self, client, gateway_service):
        self._stub_chain(gateway_service, Capability.PING, StubAdapter("ping", error=OSError("no ping binary")))

        response = client.get("/api/ping/example.com")

        assert response.status_code == 200
        assert response.json()["alive"] is False

    def test_provider_metrics_recorded(self, client, gateway_service):
        self._stub_chain(gateway_service, Capability.CRYPTO, StubAdapter("coingecko", None))

        response = client.get("/api/crypto/btc")

        assert response.status_code == 404
        assert gateway_service.metrics.registry.get_sample_value(
            "provider_calls_total", {"provider": "coingecko", "status": "empty"}
        ) == 1.0
