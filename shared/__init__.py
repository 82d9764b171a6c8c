"""
Shared utilities for the Kubernetes service exporter.

This package aggregates common building blocks consumed by the exporter:

- config: Exporter configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus self-monitoring metrics
- errors: Canonical error types
- retry: Backoff configuration for resilient remote calls
- base_service: FastAPI application scaffolding

Do not import from service_* packages into shared/.
"""
