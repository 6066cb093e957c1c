"""
Shared utilities for the KeyAuth consumer.

This package aggregates common building blocks consumed by the service:

- config: Consumer configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- circuit_breaker: Fast-fail protection for provider calls
- base_service: FastAPI application shell

Do not import from service_* packages into shared/.
"""
