"""
Observability module for autopsy

Provides OpenTelemetry tracing, Prometheus metrics and structured logging
setup for alert ingestion and status reporting.
"""

from .config import TelemetryConfig
from .init import (
    configure_logging,
    initialize_observability,
    is_observability_initialized,
    shutdown_observability,
)
from .metrics import MetricsCollector, get_metrics
from .tracer import get_tracer, trace_async, trace_operation, trace_sync

__all__ = [
    "TelemetryConfig",
    "get_tracer",
    "trace_operation",
    "trace_async",
    "trace_sync",
    "get_metrics",
    "MetricsCollector",
    "configure_logging",
    "initialize_observability",
    "shutdown_observability",
    "is_observability_initialized",
]
