"""
Shared utilities for the CRPT document client.

This package aggregates common building blocks consumed by the service
package:

- config: Client configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses

Do not import from service_* packages into shared/.
"""
