"""
Capability handlers: one per gateway tool, each fronting a fallback chain.
"""

from .base import Capability, CapabilityHandler, upstream_error
from .registry import CHAIN_DEFINITIONS, HANDLERS, build_chains, build_handlers

__all__ = [
    "Capability",
    "CapabilityHandler",
    "upstream_error",
    "CHAIN_DEFINITIONS",
    "HANDLERS",
    "build_chains",
    "build_handlers",
]
