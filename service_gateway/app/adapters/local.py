"""
Local computation adapters. They never touch the network but share the
adapter contract so every capability runs through the same chain machinery.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import ipaddress
import time
from datetime import datetime
from typing import Any, Dict

from shared.clock import format_iso, utc_now

from .base import ProviderAdapter


class SubnetCalculatorAdapter(ProviderAdapter):
    """IPv4 subnet arithmetic with unsigned 32-bit semantics."""

    name = "subnet"

    async def fetch(self, request) -> Dict[str, Any]:
        network = ipaddress.IPv4Network((request.address, request.prefix), strict=False)
        size = network.num_addresses

        if request.prefix >= 31:
            # /31 point-to-point links use both addresses; /32 is a single host.
            first_host, last_host, usable = network.network_address, network.broadcast_address, size
        else:
            first_host = network.network_address + 1
            last_host = network.broadcast_address - 1
            usable = size - 2

        return {
            "network": str(network.network_address),
            "broadcast": str(network.broadcast_address),
            "mask": str(network.netmask),
            "prefix": request.prefix,
            "first_host": str(first_host),
            "last_host": str(last_host),
            "usable_hosts": max(0, usable),
        }


class HashAdapter(ProviderAdapter):
    name = "hashlib"

    async def fetch(self, request) -> Dict[str, Any]:
        digest = hashlib.new(request.algorithm, request.text.encode("utf-8")).hexdigest()
        return {"hash": digest, "algorithm": request.algorithm, "input_length": len(request.text)}


class Base64Adapter(ProviderAdapter):
    """Encodes UTF-8 text or decodes strict base64 back to UTF-8 text."""

    name = "base64"

    async def fetch(self, request) -> Dict[str, Any]:
        if request.mode == "encode":
            result = base64.b64encode(request.text.encode("utf-8")).decode("ascii")
        else:
            result = decode_base64_text(request.text)
        return {"result": result, "mode": request.mode}


def decode_base64_text(text: str) -> str:
    """Strict decode; raises ``ValueError`` for non-base64 input or non-UTF-8 bytes."""
    try:
        raw = base64.b64decode(text.strip(), validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64: {exc}") from exc
    return raw.decode("utf-8")


class ClockAdapter(ProviderAdapter):
    name = "clock"

    async def fetch(self, request) -> Dict[str, Any]:
        now = utc_now()
        local = datetime.now().astimezone()
        return {
            "utc": format_iso(now),
            "unix": int(time.time()),
            "local": local.isoformat(timespec="seconds"),
        }
