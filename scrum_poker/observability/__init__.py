"""Observability: structured logging and Prometheus metrics.

Provides structlog-based logging and the store operation metrics.
"""
