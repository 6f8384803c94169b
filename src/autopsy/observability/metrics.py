"""
Prometheus metrics collection for autopsy

Counts ingested alerts, triage decisions, incidents and persistence failures,
times orchestration, and exposes per-service availability.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
    start_http_server,
)

from ..version import __version__
from .config import TelemetryConfig

logger = logging.getLogger(__name__)


@dataclass
class MetricsCollector:
    """
    Central metrics collector for autopsy operations

    All metrics live in the collector's own registry, so several collectors
    can coexist in one process.
    """

    config: TelemetryConfig
    registry: CollectorRegistry = field(default_factory=CollectorRegistry)

    # Ingestion metrics
    alerts_ingested_total: Counter = field(init=False)
    triage_decisions_total: Counter = field(init=False)
    incidents_created_total: Counter = field(init=False)
    persistence_errors_total: Counter = field(init=False)
    orchestration_duration: Histogram = field(init=False)

    # Status page metrics
    status_page_builds_total: Counter = field(init=False)
    service_availability: Gauge = field(init=False)

    # System health metrics
    active_operations: Gauge = field(init=False)
    system_info: Info = field(init=False)

    def __post_init__(self):
        if not self.config.enabled or not self.config.metrics.enabled:
            logger.info("Metrics collection is disabled")
            return

        self._initialize_metrics()

        if self.config.should_start_metrics_server():
            self._start_metrics_server()

    def _initialize_metrics(self):
        """Initialize all Prometheus metrics"""
        labels = list(self.config.metrics.default_labels.keys())
        buckets = self.config.metrics.duration_buckets

        self.alerts_ingested_total = Counter(
            "autopsy_alerts_ingested_total",
            "Total number of alerts ingested",
            labelnames=["source", "severity"] + labels,
            registry=self.registry,
        )

        self.triage_decisions_total = Counter(
            "autopsy_triage_decisions_total",
            "Total number of triage decisions by outcome",
            labelnames=["decision", "confidence"] + labels,
            registry=self.registry,
        )

        self.incidents_created_total = Counter(
            "autopsy_incidents_created_total",
            "Total number of incidents opened from triaged alerts",
            labelnames=["service", "severity"] + labels,
            registry=self.registry,
        )

        self.persistence_errors_total = Counter(
            "autopsy_persistence_errors_total",
            "Total number of failed store operations",
            labelnames=["operation"] + labels,
            registry=self.registry,
        )

        self.orchestration_duration = Histogram(
            "autopsy_orchestration_duration_seconds",
            "Duration of alert ingestion from persistence to incident",
            labelnames=labels,
            buckets=buckets,
            registry=self.registry,
        )

        self.status_page_builds_total = Counter(
            "autopsy_status_page_builds_total",
            "Total number of status page snapshots by overall status",
            labelnames=["overall_status"] + labels,
            registry=self.registry,
        )

        self.service_availability = Gauge(
            "autopsy_service_availability_percent",
            "Availability of a service over the last computed window",
            labelnames=["service"] + labels,
            registry=self.registry,
        )

        self.active_operations = Gauge(
            "autopsy_active_operations",
            "Number of currently active operations",
            labelnames=["operation_type"] + labels,
            registry=self.registry,
        )

        self.system_info = Info(
            "autopsy_system", "System information", registry=self.registry
        )
        self.system_info.info(
            {
                "version": __version__,
                "environment": self.config.environment,
            }
        )

        logger.info("Prometheus metrics initialized")

    def _start_metrics_server(self):
        try:
            start_http_server(port=self.config.metrics.port, registry=self.registry)
            logger.info(f"Metrics server started on port {self.config.metrics.port}")
        except OSError as e:
            logger.error(f"Failed to start metrics server: {e}")

    def _get_default_labels(self) -> dict[str, str]:
        return self.config.metrics.default_labels.copy()

    @contextmanager
    def time_operation(self, metric: Histogram, labels: Optional[dict[str, str]] = None):
        """Context manager to time operations"""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            combined_labels = {**self._get_default_labels(), **(labels or {})}
            if combined_labels:
                metric.labels(**combined_labels).observe(duration)
            else:
                metric.observe(duration)

    @contextmanager
    def track_active_operation(self, operation_type: str):
        """Context manager to track active operations"""
        labels = {**self._get_default_labels(), "operation_type": operation_type}
        self.active_operations.labels(**labels).inc()
        try:
            yield
        finally:
            self.active_operations.labels(**labels).dec()

    def record_alert_ingested(self, source: str, severity: str):
        labels = {**self._get_default_labels(), "source": source, "severity": severity}
        self.alerts_ingested_total.labels(**labels).inc()

    def record_triage_decision(self, decision: str, confidence: str):
        labels = {
            **self._get_default_labels(),
            "decision": decision,
            "confidence": confidence,
        }
        self.triage_decisions_total.labels(**labels).inc()

    def record_incident_created(self, service: str, severity: str):
        labels = {**self._get_default_labels(), "service": service, "severity": severity}
        self.incidents_created_total.labels(**labels).inc()

    def record_persistence_error(self, operation: str):
        labels = {**self._get_default_labels(), "operation": operation}
        self.persistence_errors_total.labels(**labels).inc()

    def record_status_page(self, overall_status: str, availability: dict[str, float]):
        """Record a status page build and the availability it reported"""
        labels = {**self._get_default_labels(), "overall_status": overall_status}
        self.status_page_builds_total.labels(**labels).inc()

        for service, percent in availability.items():
            service_labels = {**self._get_default_labels(), "service": service}
            self.service_availability.labels(**service_labels).set(percent)

    def get_metrics_text(self) -> str:
        """Get metrics in Prometheus text format"""
        return generate_latest(self.registry).decode("utf-8")


_metrics: Optional[MetricsCollector] = None


def initialize_metrics(config: TelemetryConfig) -> None:
    """Initialize global metrics collector"""
    global _metrics
    if not config.enabled or not config.metrics.enabled:
        _metrics = None
        return
    _metrics = MetricsCollector(config)


def get_metrics() -> Optional[MetricsCollector]:
    """Get the global metrics collector, None until initialized"""
    return _metrics


def reset_metrics() -> None:
    global _metrics
    _metrics = None
