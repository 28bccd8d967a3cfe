"""
Network adapters: IP geolocation, ASN, RDAP WHOIS, DNS resolution, ping,
HTTP reachability and TLS certificate inspection.
"""

from __future__ import annotations

import asyncio
import socket
import ssl
import sys
import time
from typing import Any, Dict, List, Optional

from cryptography import x509
from cryptography.x509.oid import NameOID

from .base import HTTPProviderAdapter, ProviderAdapter, ProviderDataError, UpstreamRejected

IP_API_URL = "http://ip-api.com/json"
BGPVIEW_IP_URL = "https://api.bgpview.io/ip"
RDAP_DOMAIN_URL = "https://rdap.org/domain"


class IPApiAdapter(HTTPProviderAdapter):
    name = "ip-api"

    async def fetch(self, request) -> Dict[str, Any]:
        info = await self._get_json(f"{IP_API_URL}/{request.ip}")
        if not isinstance(info, dict):
            raise ProviderDataError("ip-api response is not an object")
        if info.get("status") == "fail":
            raise UpstreamRejected(info.get("message") or "lookup rejected")
        return {
            "ip": info.get("query"),
            "country": info.get("country"),
            "country_code": info.get("countryCode"),
            "region": info.get("regionName"),
            "city": info.get("city"),
            "zip": info.get("zip"),
            "latitude": info.get("lat"),
            "longitude": info.get("lon"),
            "timezone": info.get("timezone"),
            "isp": info.get("isp"),
            "org": info.get("org"),
            "as": info.get("as"),
        }


class BGPViewASNAdapter(HTTPProviderAdapter):
    name = "bgpview"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        payload = await self._get_json(f"{BGPVIEW_IP_URL}/{request.ip}")
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise ProviderDataError("bgpview response missing data")

        prefixes = data.get("prefixes") or []
        if not prefixes:
            return None
        prefix = prefixes[0]
        asn = prefix.get("asn") or {}
        return {
            "ip": request.ip,
            "asn": asn.get("asn"),
            "asn_name": asn.get("name"),
            "description": asn.get("description"),
            "country": asn.get("country_code"),
            "prefix": prefix.get("prefix"),
            "rir": (data.get("rir_allocation") or {}).get("rir_name"),
        }


class RDAPWhoisAdapter(HTTPProviderAdapter):
    name = "rdap"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        record = await self._get_json(
            f"{RDAP_DOMAIN_URL}/{request.domain}",
            headers={"Accept": "application/rdap+json, application/json"},
            not_found_is_empty=True,
        )
        if record is None:
            return None
        if not isinstance(record, dict):
            raise ProviderDataError("RDAP record is not an object")

        events = {
            event.get("eventAction"): event.get("eventDate")
            for event in record.get("events") or []
        }
        return {
            "domain": (record.get("ldhName") or request.domain).lower(),
            "status": list(record.get("status") or []),
            "registrar": self._registrar(record.get("entities") or []),
            "created": events.get("registration"),
            "expires": events.get("expiration"),
            "updated": events.get("last changed"),
            "nameservers": [ns.get("ldhName") for ns in record.get("nameservers") or [] if ns.get("ldhName")],
        }

    @staticmethod
    def _registrar(entities: List[Dict[str, Any]]) -> Optional[str]:
        for entity in entities:
            if "registrar" not in (entity.get("roles") or []):
                continue
            vcard = entity.get("vcardArray") or []
            properties = vcard[1] if len(vcard) > 1 else []
            for prop in properties:
                if prop and prop[0] == "fn" and len(prop) > 3:
                    return prop[3]
        return None


class DNSResolverAdapter(ProviderAdapter):
    """Resolves A and AAAA records concurrently; either may fail on its own."""

    name = "dns"

    async def fetch(self, request) -> Dict[str, List[str]]:
        ipv4, ipv6 = await asyncio.gather(
            self._resolve(request.hostname, socket.AF_INET),
            self._resolve(request.hostname, socket.AF_INET6),
            return_exceptions=True,
        )
        return {
            "ipv4": ipv4 if isinstance(ipv4, list) else [],
            "ipv6": ipv6 if isinstance(ipv6, list) else [],
        }

    async def _resolve(self, hostname: str, family: int) -> List[str]:
        loop = asyncio.get_running_loop()
        infos = await loop.getaddrinfo(hostname, None, family=family, type=socket.SOCK_STREAM)
        addresses: List[str] = []
        for info in infos:
            address = info[4][0]
            if address not in addresses:
                addresses.append(address)
        return addresses


class PingAdapter(ProviderAdapter):
    """Four ICMP echo requests through the system ``ping`` binary."""

    name = "ping"
    count = 4

    async def fetch(self, request) -> Dict[str, Any]:
        count_flag = "-n" if sys.platform == "win32" else "-c"
        process = await asyncio.create_subprocess_exec(
            "ping", count_flag, str(self.count), request.host,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await process.communicate()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()

        output = stdout.decode("utf-8", errors="replace")
        lines = [line for line in output.splitlines() if line.strip()]
        alive = process.returncode == 0 and "100% packet loss" not in output.lower()
        return {"host": request.host, "alive": alive, "output": lines}


class HTTPReachabilityAdapter(HTTPProviderAdapter):
    """HEAD request that reports whatever status the target answers with."""

    name = "http-check"

    async def fetch(self, request) -> Dict[str, Any]:
        start = time.perf_counter()
        response = await self.client.head(
            request.url,
            headers=self._headers(),
            timeout=self.timeout,
            follow_redirects=True,
        )
        return {
            "url": request.url,
            "status": response.status_code,
            "status_text": response.reason_phrase,
            "server": response.headers.get("server"),
            "content_type": response.headers.get("content-type"),
            "latency_ms": round((time.perf_counter() - start) * 1000),
            "final_url": str(response.url),
        }


class TLSCertificateAdapter(ProviderAdapter):
    """Reads the peer certificate without verifying the chain."""

    name = "tls"

    async def fetch(self, request) -> Optional[Dict[str, Any]]:
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

        reader, writer = await asyncio.open_connection(
            request.hostname,
            request.port,
            ssl=context,
            server_hostname=request.hostname,
        )
        try:
            ssl_object = writer.get_extra_info("ssl_object")
            der = ssl_object.getpeercert(binary_form=True) if ssl_object else None
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ssl.SSLError, ConnectionError):
                pass

        if not der:
            return None
        return self._describe(x509.load_der_x509_certificate(der))

    @staticmethod
    def _describe(cert: x509.Certificate) -> Dict[str, Any]:
        def attribute(name: x509.Name, oid) -> Optional[str]:
            values = name.get_attributes_for_oid(oid)
            return str(values[0].value) if values else None

        try:
            san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName)
            alt_names = san.value.get_values_for_type(x509.DNSName)
        except x509.ExtensionNotFound:
            alt_names = []

        return {
            "subject_cn": attribute(cert.subject, NameOID.COMMON_NAME),
            "issuer": attribute(cert.issuer, NameOID.ORGANIZATION_NAME),
            "not_before": cert.not_valid_before_utc,
            "not_after": cert.not_valid_after_utc,
            "san": alt_names,
        }
