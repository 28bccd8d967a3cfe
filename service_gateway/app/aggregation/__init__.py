"""
Aggregation layer: fallback chains over provider adapters and the
declarative normalizer that maps their records to stable output schemas.
"""

from .chain import ChainResult, FallbackChain, merge_payloads
from .normalizer import FieldRule, Normalizer

__all__ = [
    "ChainResult",
    "FallbackChain",
    "merge_payloads",
    "FieldRule",
    "Normalizer",
]
