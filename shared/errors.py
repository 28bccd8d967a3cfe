"""
Shared error handling for the Agent Tools Gateway.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(extra="allow")

    error: str
    details: Optional[str] = None
    code: str


class GatewayError(Exception):
    """Base exception for gateway errors surfaced to callers."""

    status_code: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        self.extra = extra or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=self.message,
            details=self.details,
            code=self.code,
            **self.extra,
        )


class ValidationError(GatewayError):
    """Bad or missing input. Never retried."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Optional[str] = None,
                 extra: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details, extra)


class NotFoundError(GatewayError):
    """The requested resource does not exist upstream."""

    status_code = 404

    def __init__(self, message: str = "Resource not found", details: Optional[str] = None,
                 extra: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_FOUND", message, details, extra)


class UpstreamError(GatewayError):
    """Provider-class failure that exhausted its fallback chain."""

    status_code = 500


class ProviderTimeout(UpstreamError):
    """Every provider that was tried timed out or the last one did."""

    def __init__(self, message: str = "Upstream timed out", details: Optional[str] = None):
        super().__init__("PROVIDER_TIMEOUT", message, details)


class ProviderUnavailable(UpstreamError):
    """Network failure or upstream 5xx."""

    def __init__(self, message: str = "Upstream unavailable", details: Optional[str] = None):
        super().__init__("PROVIDER_UNAVAILABLE", message, details)


class ProviderDataUnusable(UpstreamError):
    """Upstream answered but the payload could not be used."""

    def __init__(self, message: str = "Upstream returned unusable data", details: Optional[str] = None):
        super().__init__("PROVIDER_DATA_UNUSABLE", message, details)


class InternalFault(GatewayError):
    """Programming or normalization error. Message never includes internals."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__("INTERNAL_ERROR", message)
