"""Observability: structured logging, metrics, optional tracing.

Provides standardized observability primitives using structlog for logging
and Prometheus for metrics.
"""
