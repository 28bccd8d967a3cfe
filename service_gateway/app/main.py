"""
Agent Tools Gateway service.

Exposes every capability over HTTP. Routes only collect parameters; each
one delegates to its capability handler, which owns validation, the
provider fallback chain and normalization.
"""

from typing import Any, Dict, Optional

import httpx
from fastapi import Request
from fastapi.routing import APIRoute

from shared.base_service import BaseService
from shared.clock import utc_now_iso
from shared.config import GatewayConfig
from shared.errors import ValidationError

from service_gateway.app.capabilities import Capability, build_handlers


class GatewayService(BaseService):
    """Gateway service implementation."""

    def __init__(self, config: Optional[GatewayConfig] = None, client: Optional[httpx.AsyncClient] = None):
        super().__init__("gateway", config)
        self.client = client or httpx.AsyncClient(
            follow_redirects=True,
            max_redirects=5,
            headers={"User-Agent": self.config.user_agent},
        )
        self.handlers = build_handlers(self.config, self.client, self.metrics)

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.client.aclose()

        self._setup_gateway_routes()
        self._setup_utility_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    async def dispatch(self, capability: Capability, **params: Any) -> Dict[str, Any]:
        return await self.handlers[capability].handle(params)

    def _get_client_ip(self, request: Request) -> str:
        """Extract the caller IP from standard headers."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip
        if request.client:
            return request.client.host
        return "unknown"

    async def _read_json(self, request: Request) -> Dict[str, Any]:
        """Decode a JSON object body; anything else is a 400."""
        try:
            body = await request.json()
        except ValueError as exc:
            raise ValidationError("Invalid JSON body", details=str(exc)) from exc
        if not isinstance(body, dict):
            raise ValidationError("JSON body must be an object")
        return body

    def _setup_gateway_routes(self):
        """Set up routes backed by external providers."""

        @self.app.get("/", include_in_schema=False)
        async def root():
            return {
                "service": "gateway",
                "message": "Agent Tools Gateway",
                "version": "1.0.0",
                "endpoints": "/api/endpoints",
            }

        @self.app.post("/api/search", summary="Web search", tags=["search"])
        async def search(request: Request):
            body = await self._read_json(request)
            return await self.dispatch(
                Capability.SEARCH, query=body.get("query"), num_results=body.get("num_results")
            )

        @self.app.get("/api/news/{query}", summary="News search", tags=["search"])
        async def news(query: str, num_results: Optional[str] = None):
            return await self.dispatch(Capability.NEWS, query=query, num_results=num_results)

        @self.app.get("/api/weather/{location}", summary="Current weather and today's forecast", tags=["weather"])
        async def weather(location: str):
            return await self.dispatch(Capability.WEATHER, location=location)

        @self.app.get("/api/weather-alerts/{location}", summary="Active weather alerts", tags=["weather"])
        async def weather_alerts(location: str):
            return await self.dispatch(Capability.WEATHER_ALERTS, location=location)

        @self.app.get("/api/timezones", summary="List time zones", tags=["time"])
        async def timezones():
            return await self.dispatch(Capability.TIMEZONES)

        @self.app.get("/api/timezone/{zone:path}", summary="Current time in a zone", tags=["time"])
        async def timezone(zone: str):
            return await self.dispatch(Capability.TIMEZONE, zone=zone)

        @self.app.get("/api/geocode/{location}", summary="Location to coordinates", tags=["geo"])
        async def geocode(location: str):
            return await self.dispatch(Capability.GEOCODE, location=location)

        @self.app.get("/api/reverse-geocode/{lat}/{lon}", summary="Coordinates to address", tags=["geo"])
        async def reverse_geocode(lat: str, lon: str):
            return await self.dispatch(Capability.REVERSE_GEOCODE, lat=lat, lon=lon)

        @self.app.get("/api/ip", summary="Geolocate the caller", tags=["network"])
        async def caller_ip(request: Request):
            return await self.dispatch(Capability.IP_LOOKUP, ip=self._get_client_ip(request))

        @self.app.get("/api/ip/{ip}", summary="Geolocate an IP address", tags=["network"])
        async def ip_lookup(ip: str):
            return await self.dispatch(Capability.IP_LOOKUP, ip=ip)

        @self.app.get("/api/phone/{number}", summary="Phone number metadata", tags=["lookup"])
        async def phone(number: str, country: Optional[str] = None):
            return await self.dispatch(Capability.PHONE, number=number, country=country)

        @self.app.get("/api/dns/{hostname}", summary="Resolve A and AAAA records", tags=["network"])
        async def dns(hostname: str):
            return await self.dispatch(Capability.DNS, hostname=hostname)

        @self.app.get("/api/ping/{host}", summary="ICMP reachability", tags=["network"])
        async def ping(host: str):
            return await self.dispatch(Capability.PING, host=host)

        @self.app.get("/api/apod", summary="NASA astronomy picture of the day", tags=["lookup"])
        async def apod():
            return await self.dispatch(Capability.APOD)

        @self.app.get("/api/whois/{domain}", summary="Domain registration data", tags=["network"])
        async def whois(domain: str):
            return await self.dispatch(Capability.WHOIS, domain=domain)

        @self.app.get("/api/asn/{ip}", summary="Autonomous system for an IP", tags=["network"])
        async def asn(ip: str):
            return await self.dispatch(Capability.ASN, ip=ip)

        @self.app.get("/api/crypto/{symbol}", summary="Cryptocurrency price", tags=["lookup"])
        async def crypto(symbol: str):
            return await self.dispatch(Capability.CRYPTO, symbol=symbol)

        @self.app.get("/api/cve/{cve_id}", summary="Vulnerability record", tags=["security"])
        async def cve(cve_id: str):
            return await self.dispatch(Capability.CVE, cve_id=cve_id)

        @self.app.get("/api/ssl/{hostname}", summary="TLS certificate check", tags=["security"])
        async def ssl_check(hostname: str, port: Optional[str] = None):
            return await self.dispatch(Capability.SSL, hostname=hostname, port=port)

        @self.app.get("/api/http-status", summary="HTTP reachability check", tags=["network"])
        async def http_status(url: Optional[str] = None):
            return await self.dispatch(Capability.HTTP_STATUS, url=url)

        @self.app.get("/api/endpoints", summary="List available endpoints", tags=["meta"])
        async def list_gateway_routes():
            """Return metadata for registered API routes."""
            routes_payload = []
            for route in self.app.router.routes:
                if not isinstance(route, APIRoute) or not route.include_in_schema:
                    continue
                if route.path.startswith("/openapi") or route.path.startswith("/docs"):
                    continue
                methods = sorted(m for m in (route.methods or set()) if m not in {"HEAD", "OPTIONS"})
                routes_payload.append(
                    {
                        "path": route.path,
                        "methods": methods,
                        "name": route.name,
                        "summary": route.summary,
                        "tags": list(route.tags or []),
                    }
                )

            routes_payload.sort(key=lambda item: item["path"])
            return {
                "count": len(routes_payload),
                "routes": routes_payload,
                "timestamp": utc_now_iso(),
            }

    def _setup_utility_routes(self):
        """Set up routes computed locally."""

        @self.app.get("/api/time", summary="Current server time", tags=["time"])
        async def current_time():
            return await self.dispatch(Capability.TIME)

        @self.app.post("/api/hash", summary="Hash text", tags=["utility"])
        async def hash_text(request: Request):
            body = await self._read_json(request)
            return await self.dispatch(Capability.HASH, text=body.get("text"), algorithm=body.get("algorithm"))

        @self.app.post("/api/base64", summary="Base64 encode or decode", tags=["utility"])
        async def base64_text(request: Request):
            body = await self._read_json(request)
            return await self.dispatch(Capability.BASE64, text=body.get("text"), mode=body.get("mode"))

        @self.app.post("/api/subnet", summary="IPv4 subnet calculator", tags=["utility"])
        async def subnet(request: Request):
            body = await self._read_json(request)
            return await self.dispatch(Capability.SUBNET, cidr=body.get("cidr"))


def create_app():
    """Create FastAPI application."""
    service = GatewayService()
    return service.app


def run():
    """Console entry point."""
    GatewayService().run()


if __name__ == "__main__":
    run()
