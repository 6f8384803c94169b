"""
Pytest configuration and shared fixtures for autopsy tests

Provides isolated configuration, stores, fixed clocks and sample alerts.
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from autopsy.config import AutopsyConfig, set_config
from autopsy.models import Alert, Incident, Service, Severity
from autopsy.observability import metrics as metrics_module
from autopsy.store import MemoryStore

NOW = datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_globals():
    """Keep global config and metrics from leaking between tests"""
    set_config(AutopsyConfig())
    metrics_module.reset_metrics()
    yield
    set_config(None)
    metrics_module.reset_metrics()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def test_config():
    """Provide a test configuration with safe defaults"""
    return AutopsyConfig()


@pytest.fixture
def memory_store():
    return MemoryStore(clock=lambda: NOW)


@pytest.fixture
def critical_timeout_alert_data():
    return {
        "title": "Checkout latency SLO burn",
        "description": "Payment gateway timeout rate above 5%",
        "severity": "critical",
        "labels": {"service": "payments", "metric": "http_request_duration_seconds"},
        "payload": {"dashboard": "https://grafana.example.com/d/checkout", "value": 0.07},
    }


@pytest.fixture
def warning_retry_alert_data():
    return {
        "title": "Queue backlog",
        "description": "retry queue is increasing",
        "severity": "warning",
        "labels": {"service": "workers"},
    }


@pytest.fixture
def info_alert_data():
    return {
        "source": "prometheus",
        "title": "Disk usage notice",
        "description": "Disk usage at 70%",
        "severity": "info",
    }


def make_alert(**overrides) -> Alert:
    data = {"title": "Test alert", "description": "", "severity": Severity.INFO}
    data.update(overrides)
    return Alert(**data)


def make_incident(service: str, start: datetime, end=None, **overrides) -> Incident:
    data = {
        "service": service,
        "title": f"{service} outage",
        "severity": Severity.WARNING,
        "status": "resolved" if end is not None else "investigating",
        "created_at": start,
        "resolved_at": end,
    }
    data.update(overrides)
    return Incident(**data)


def make_service(name: str, record_id: int = 1) -> Service:
    return Service(id=record_id, name=name, created_at=NOW - timedelta(days=30))


@pytest.fixture
def alert_file(tmp_path, critical_timeout_alert_data):
    """Write the critical alert to a JSON file for CLI tests"""
    path = tmp_path / "alert.json"
    path.write_text(json.dumps(critical_timeout_alert_data))
    return path


def pytest_configure(config):
    """Configure custom pytest markers"""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line(
        "markers", "integration: Integration tests across multiple components"
    )
