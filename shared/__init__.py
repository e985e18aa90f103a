"""
Shared utilities for the Store Services credential layer.

- config: Settings via pydantic-settings (STORE_* environment variables)
- logging: Structured logging with trace correlation
- metrics: Prometheus counters for token requests and store id refreshes
- errors: Canonical error types and responses
- test_helpers: Token and response factories for tests

Do not import from service_store_auth into shared/.
"""
