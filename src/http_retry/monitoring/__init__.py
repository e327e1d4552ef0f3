"""Monitoring and metrics instrumentation for the HTTP retry layer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from http_retry.monitoring.metrics import (
    retries_total,
    retry_delay_seconds,
    retry_outcomes_total,
)

__all__ = [
    "retries_total",
    "retry_outcomes_total",
    "retry_delay_seconds",
]
