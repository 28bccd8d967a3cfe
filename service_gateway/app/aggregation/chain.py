"""
Fallback chain: ordered, strictly sequential provider invocation.

A chain walks its providers in priority order and stops at the first
provider that returns usable data. Later providers are fallbacks, never
races, so they are only spent once every earlier provider has been confirmed
unusable. Partial results (``ProviderOutcome.partial``) are accumulated and
merged into whatever the chain finally returns.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..adapters.base import OutcomeStatus, ProviderAdapter, ProviderOutcome

Merge = Callable[[Any, Any], Any]


def merge_payloads(accumulated: Any, data: Any) -> Any:
    """Default merge: dict keys from later providers win unless they are None; lists concatenate."""
    if accumulated is None:
        return data
    if isinstance(accumulated, dict) and isinstance(data, dict):
        merged = dict(accumulated)
        merged.update({key: value for key, value in data.items() if value is not None})
        return merged
    if isinstance(accumulated, list) and isinstance(data, list):
        return accumulated + data
    return data


@dataclass
class ChainResult:
    """What a chain run produced, plus every attempt for diagnostics."""

    capability: str
    data: Any = None
    contributors: List[str] = field(default_factory=list)
    attempts: List[ProviderOutcome] = field(default_factory=list)

    @property
    def exhausted(self) -> bool:
        """True when no provider contributed usable data."""
        return not self.contributors

    @property
    def failures(self) -> List[ProviderOutcome]:
        return [attempt for attempt in self.attempts if attempt.status is OutcomeStatus.FAILURE]

    @property
    def saw_empty(self) -> bool:
        return any(attempt.status is OutcomeStatus.EMPTY for attempt in self.attempts)

    @property
    def last_failure(self) -> Optional[ProviderOutcome]:
        failures = self.failures
        return failures[-1] if failures else None

    @property
    def source(self) -> str:
        return "+".join(self.contributors)


class FallbackChain:
    """Ordered provider list for one capability."""

    def __init__(
        self,
        capability: str,
        providers: Sequence[ProviderAdapter],
        *,
        merge: Merge = merge_payloads,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.capability = str(getattr(capability, "value", capability))
        self.providers = tuple(providers)
        self.merge = merge
        self.metrics = metrics
        self.logger = get_logger("gateway.chain")

    @property
    def provider_names(self) -> List[str]:
        return [provider.name for provider in self.providers]

    async def run(self, request: Any) -> ChainResult:
        result = ChainResult(self.capability)

        for position, provider in enumerate(self.providers):
            outcome = await provider.call(request)
            result.attempts.append(outcome)
            self._record(outcome)

            if outcome.usable:
                result.data = self.merge(result.data, outcome.data)
                result.contributors.append(outcome.provider)
                if not outcome.partial:
                    return result
                continue

            if position < len(self.providers) - 1:
                self.logger.debug(
                    "Falling back to next provider",
                    capability=self.capability,
                    provider=outcome.provider,
                    status=outcome.status.value,
                    reason=outcome.reason.value if outcome.reason else None,
                )
                if self.metrics:
                    self.metrics.increment_counter("fallback_advances_total", capability=self.capability)

        if result.exhausted:
            self.logger.info(
                "Fallback chain exhausted",
                capability=self.capability,
                attempts=[
                    {
                        "provider": attempt.provider,
                        "status": attempt.status.value,
                        "reason": attempt.reason.value if attempt.reason else None,
                    }
                    for attempt in result.attempts
                ],
            )
            if self.metrics:
                self.metrics.increment_counter("chain_exhausted_total", capability=self.capability)
        return result

    def _record(self, outcome: ProviderOutcome) -> None:
        if self.metrics:
            self.metrics.record_provider_call(outcome.provider, outcome.status.value, outcome.latency_ms)
