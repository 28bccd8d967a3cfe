"""
Shared logging configuration for the Agent Tools Gateway.

Every event is rendered as one JSON line. Besides the service name and the
request id, events carry the capability being served and, for adapter
loggers, the provider name, so a single request can be followed from the
route through each fallback attempt.
"""

import logging
import sys
import uuid
from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

import structlog

ADAPTER_LOGGER_PREFIX = "gateway.adapters."

# Context variables for request correlation
request_id_var: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
capability_var: ContextVar[Optional[str]] = ContextVar('capability', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_correlation_context,
            add_provider_context,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    structlog.contextvars.bind_contextvars(service=service_name)


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    for key, value in structlog.contextvars.get_contextvars().items():
        event_dict.setdefault(key, value)
    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the request ID and the capability being served."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id

    capability = capability_var.get()
    if capability:
        event_dict.setdefault("capability", capability)
    return event_dict


def add_provider_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Name the provider for events emitted by an adapter logger."""
    logger_name = event_dict.get("logger") or ""
    if logger_name.startswith(ADAPTER_LOGGER_PREFIX):
        event_dict.setdefault("provider", logger_name[len(ADAPTER_LOGGER_PREFIX):])
    return event_dict


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set request ID in context."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def set_capability(capability: str) -> Token:
    """Mark the capability served by the current task; pass the token to :func:`reset_capability`."""
    return capability_var.set(capability)


def reset_capability(token: Token) -> None:
    capability_var.reset(token)


def clear_context():
    """Clear all context variables."""
    request_id_var.set(None)
    capability_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
