"""
Shared utilities for the Agent Tools Gateway.

This package aggregates common building blocks consumed by the gateway:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service shell (middleware, health, error handlers)
- clock: UTC timestamps for envelopes
- test_helpers: Payload factories and adapter doubles for the test suite

Only test_helpers imports from service_gateway.
"""
