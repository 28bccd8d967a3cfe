"""
Local utility capabilities: hashing, base64, subnet arithmetic and the clock.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from shared.errors import ValidationError

from ..adapters.local import decode_base64_text
from ..aggregation.chain import ChainResult
from ..aggregation.normalizer import BASE64_RULES, HASH_RULES, SUBNET_RULES, TIME_RULES
from .base import Capability, CapabilityHandler
from .requests import (
    Base64Request,
    EmptyRequest,
    HashRequest,
    SubnetRequest,
    parse_cidr,
    require_text,
    validate_algorithm,
    validate_mode,
)


class HashHandler(CapabilityHandler):
    capability = Capability.HASH
    rules = HASH_RULES

    def validate(self, params: Mapping[str, Any]) -> HashRequest:
        return HashRequest(
            text=require_text(params, "text", strip=False),
            algorithm=validate_algorithm(params.get("algorithm")),
        )


class Base64Handler(CapabilityHandler):
    capability = Capability.BASE64
    rules = BASE64_RULES

    def validate(self, params: Mapping[str, Any]) -> Base64Request:
        request = Base64Request(
            text=require_text(params, "text", strip=False),
            mode=validate_mode(params.get("mode")),
        )
        if request.mode == "decode":
            try:
                decode_base64_text(request.text)
            except ValueError as exc:
                raise ValidationError("Invalid base64 string", details=str(exc))
        return request


class SubnetHandler(CapabilityHandler):
    capability = Capability.SUBNET
    rules = SUBNET_RULES

    def validate(self, params: Mapping[str, Any]) -> SubnetRequest:
        return parse_cidr(require_text(params, "cidr"))

    def normalize(self, request: SubnetRequest, result: ChainResult) -> Dict[str, Any]:
        body = {"cidr": request.cidr}
        body.update(self.normalizer.normalize(result.data))
        return body


class TimeHandler(CapabilityHandler):
    capability = Capability.TIME
    rules = TIME_RULES

    def validate(self, params: Mapping[str, Any]) -> EmptyRequest:
        return EmptyRequest()
