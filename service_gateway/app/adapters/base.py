"""
Provider adapter contract for the Gateway.

An adapter wraps exactly one upstream data source (or one local computation)
and answers every call with a :class:`ProviderOutcome`. Network, parse and
timeout errors are converted to ``failure`` outcomes at this boundary; the
only exception allowed through is task cancellation.

Adapters return provider-neutral records from :meth:`ProviderAdapter.fetch`.
Upstream field names stay inside the adapter module that knows them.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

import httpx

from shared.config import GatewayConfig
from shared.logging import get_logger


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    FAILURE = "failure"


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    UPSTREAM_4XX = "upstream_4xx"
    UPSTREAM_5XX = "upstream_5xx"
    UNPARSEABLE = "unparseable"
    NETWORK = "network"


class ProviderDataError(ValueError):
    """Raised inside ``fetch`` when a 2xx payload does not have the expected shape."""


class UpstreamRejected(Exception):
    """Raised inside ``fetch`` when the upstream answers 2xx but refuses the input."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class ProviderOutcome:
    """Result of one adapter call. Never returned to API callers as-is.

    ``rejected`` marks a failure where the upstream answered but refused the
    input itself, as opposed to an HTTP error status.
    """

    provider: str
    status: OutcomeStatus
    data: Any = None
    reason: Optional[ErrorKind] = None
    detail: Optional[str] = None
    upstream_status: Optional[int] = None
    latency_ms: float = 0.0
    partial: bool = False
    rejected: bool = False

    @classmethod
    def success(cls, provider: str, data: Any, *, latency_ms: float = 0.0, partial: bool = False) -> "ProviderOutcome":
        return cls(provider, OutcomeStatus.SUCCESS, data=data, latency_ms=latency_ms, partial=partial)

    @classmethod
    def empty(cls, provider: str, *, latency_ms: float = 0.0) -> "ProviderOutcome":
        return cls(provider, OutcomeStatus.EMPTY, latency_ms=latency_ms)

    @classmethod
    def failure(
        cls,
        provider: str,
        reason: ErrorKind,
        *,
        detail: Optional[str] = None,
        upstream_status: Optional[int] = None,
        latency_ms: float = 0.0,
        rejected: bool = False,
    ) -> "ProviderOutcome":
        return cls(
            provider,
            OutcomeStatus.FAILURE,
            reason=reason,
            detail=detail,
            upstream_status=upstream_status,
            latency_ms=latency_ms,
            rejected=rejected,
        )

    @property
    def usable(self) -> bool:
        """Success carrying at least one data item."""
        return self.status is OutcomeStatus.SUCCESS and not is_empty_payload(self.data)


def is_empty_payload(data: Any) -> bool:
    if data is None:
        return True
    if isinstance(data, (list, tuple, dict, set, str)):
        return len(data) == 0
    return False


class ProviderAdapter:
    """Base class for all provider adapters.

    Subclasses set ``name`` and implement :meth:`fetch`. ``yields_partial``
    marks adapters whose data is a base record that later providers in a
    chain may enrich. ``credential`` names an optional config attribute; when
    it is unset the adapter is left out of its chain.
    """

    name: str = "provider"
    yields_partial: bool = False
    credential: Optional[str] = None

    def __init__(self, config: GatewayConfig, client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self.client = client
        self.timeout = config.timeout_for(self.name)
        self.logger = get_logger(f"gateway.adapters.{self.name}")

    @classmethod
    def enabled(cls, config: GatewayConfig) -> bool:
        return cls.credential is None or config.has_credential(cls.credential)

    async def fetch(self, request: Any) -> Any:
        """Perform the provider call and return a neutral record (or None)."""
        raise NotImplementedError

    async def call(self, request: Any) -> ProviderOutcome:
        """Invoke the provider under its timeout and classify the result."""
        start = time.perf_counter()
        try:
            data = await asyncio.wait_for(self.fetch(request), timeout=self.timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._failed(start, ErrorKind.TIMEOUT, f"no response within {self.timeout:g}s")
        except httpx.HTTPStatusError as exc:
            code = exc.response.status_code
            kind = ErrorKind.UPSTREAM_5XX if code >= 500 else ErrorKind.UPSTREAM_4XX
            return self._failed(start, kind, f"HTTP {code}", upstream_status=code)
        except UpstreamRejected as exc:
            return self._failed(
                start, ErrorKind.UPSTREAM_4XX, str(exc), upstream_status=exc.status_code, rejected=True
            )
        except (httpx.HTTPError, OSError) as exc:
            return self._failed(start, ErrorKind.NETWORK, exc.__class__.__name__)
        except (ValueError, KeyError, TypeError, IndexError) as exc:
            return self._failed(start, ErrorKind.UNPARSEABLE, exc.__class__.__name__)
        except Exception:
            self.logger.error("Provider adapter fault", exc_info=True)
            return self._failed(start, ErrorKind.UNPARSEABLE, "adapter fault")

        latency_ms = _elapsed_ms(start)
        if is_empty_payload(data):
            self.logger.debug("Provider returned no data", latency_ms=latency_ms)
            return ProviderOutcome.empty(self.name, latency_ms=latency_ms)

        self.logger.debug("Provider call succeeded", latency_ms=latency_ms)
        return ProviderOutcome.success(self.name, data, latency_ms=latency_ms, partial=self.yields_partial)

    def _failed(
        self,
        start: float,
        reason: ErrorKind,
        detail: str,
        *,
        upstream_status: Optional[int] = None,
        rejected: bool = False,
    ) -> ProviderOutcome:
        latency_ms = _elapsed_ms(start)
        self.logger.warning(
            "Provider call failed",
            reason=reason.value,
            detail=detail,
            latency_ms=latency_ms,
        )
        return ProviderOutcome.failure(
            self.name,
            reason,
            detail=detail,
            upstream_status=upstream_status,
            latency_ms=latency_ms,
            rejected=rejected,
        )


class HTTPProviderAdapter(ProviderAdapter):
    """Adapter backed by the shared ``httpx.AsyncClient`` connection pool."""

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> dict:
        headers = {"User-Agent": self.config.user_agent}
        if extra:
            headers.update(extra)
        return headers

    async def _get(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        self.logger.debug("HTTP request", url=url)
        response = await self.client.get(
            url,
            params=params,
            headers=self._headers(headers),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response

    async def _get_json(
        self,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
        not_found_is_empty: bool = False,
    ) -> Any:
        """GET and decode JSON. With ``not_found_is_empty`` an upstream 404 yields None."""
        try:
            response = await self._get(url, params=params, headers=headers)
        except httpx.HTTPStatusError as exc:
            if not_found_is_empty and exc.response.status_code == 404:
                return None
            raise
        return response.json()


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
