"""
Telemetry settings

Tracing, metrics and log output for the ingestion, triage and status page
paths. Every section can be filled from the environment through from_env().
"""

import os
from typing import Optional

from pydantic import BaseModel, Field


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class TracingConfig(BaseModel):
    """Span export for alert ingestion and availability runs"""

    enabled: bool = True
    service_name: str = "autopsy"
    otlp_endpoint: Optional[str] = Field(
        default=None, description="OTLP gRPC collector, e.g. http://localhost:4317"
    )
    otlp_insecure: bool = True
    sample_rate: float = Field(default=1.0, ge=0.0, le=1.0)

    @classmethod
    def from_env(cls) -> "TracingConfig":
        return cls(
            enabled=_env_flag("AUTOPSY_TRACING", True),
            service_name=os.getenv("OTEL_SERVICE_NAME", "autopsy"),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT") or None,
            otlp_insecure=_env_flag("OTEL_EXPORTER_OTLP_INSECURE", True),
            sample_rate=float(os.getenv("OTEL_TRACES_SAMPLER_ARG", "1.0")),
        )


class MetricsConfig(BaseModel):
    """Prometheus counters for alerts, incidents and availability"""

    enabled: bool = True
    start_server: bool = Field(
        default=False, description="Expose /metrics over HTTP on `port`"
    )
    port: int = Field(default=9090, ge=1024, le=65535)
    default_labels: dict[str, str] = Field(
        default_factory=dict, description="Labels stamped on every series, e.g. region"
    )
    duration_buckets: list[float] = Field(
        default_factory=lambda: [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
    )

    @classmethod
    def from_env(cls) -> "MetricsConfig":
        return cls(
            enabled=_env_flag("AUTOPSY_METRICS", True),
            start_server=_env_flag("AUTOPSY_METRICS_SERVER", False),
            port=int(os.getenv("AUTOPSY_METRICS_PORT", "9090")),
        )


class LoggingConfig(BaseModel):
    """Log output for --verbose runs"""

    enabled: bool = True
    level: str = "INFO"
    format: str = Field(default="json", description="json or text")
    correlate_traces: bool = Field(
        default=True, description="Stamp trace_id/span_id onto log records"
    )


class TelemetryConfig(BaseModel):
    """All telemetry sections plus the deployment they report for"""

    enabled: bool = True
    environment: str = "development"

    tracing: TracingConfig = Field(default_factory=TracingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls) -> "TelemetryConfig":
        return cls(
            enabled=_env_flag("AUTOPSY_TELEMETRY", True),
            environment=os.getenv("AUTOPSY_ENVIRONMENT", "development"),
            tracing=TracingConfig.from_env(),
            metrics=MetricsConfig.from_env(),
        )

    def should_export_traces(self) -> bool:
        return self.enabled and self.tracing.enabled and bool(self.tracing.otlp_endpoint)

    def should_start_metrics_server(self) -> bool:
        return self.enabled and self.metrics.enabled and self.metrics.start_server
