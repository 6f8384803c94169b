"""
Availability Aggregator - per-service downtime over a reporting window

Pure functions over caller-supplied snapshots of services and incidents.
Nothing here does I/O or keeps state between calls.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable

from .models import (
    UNKNOWN_SERVICE,
    Incident,
    OverallStatus,
    Service,
    ServiceAvailability,
    Severity,
    as_utc,
)
from .observability.tracer import trace_sync

logger = logging.getLogger(__name__)

PUBLICLY_OPEN_STATUSES = frozenset({"investigating", "identified"})


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def incident_overlap(
    incident: Incident, period_start: datetime, period_end: datetime
) -> timedelta:
    """
    Portion of an incident that falls inside the window

    Open incidents are charged through the end of the window.
    """
    if incident.created_at is None:
        return timedelta(0)

    incident_end = incident.resolved_at or period_end
    if incident_end < period_start or incident.created_at > period_end:
        return timedelta(0)
    if incident.created_at > incident_end:
        return timedelta(0)

    overlap_start = max(incident.created_at, period_start)
    overlap_end = min(incident_end, period_end)
    if overlap_end > overlap_start:
        return overlap_end - overlap_start
    return timedelta(0)


@trace_sync("availability.compute")
def compute_availability(
    services: Iterable[Service],
    incidents: Iterable[Incident],
    period_start: datetime,
    period_end: datetime,
) -> list[ServiceAvailability]:
    """
    Compute availability for every known or incident-attributed service

    Overlapping incidents on one service are summed rather than merged, so
    concurrent outages can report more downtime than wall-clock time; the
    percentage is clamped at 0.

    Args:
        services: Known services; each appears even without incidents
        incidents: Incidents to charge against their services
        period_start: Start of the reporting window
        period_end: End of the reporting window

    Returns:
        One entry per service, sorted by service name; empty for an empty
        or inverted window
    """
    period_start, period_end = as_utc(period_start), as_utc(period_end)

    downtime: dict[str, timedelta] = {}
    for service in services:
        if service.name:
            downtime[service.name] = timedelta(0)

    period = period_end - period_start
    if period <= timedelta(0):
        logger.debug(f"Empty availability window {period_start} .. {period_end}")
        return []

    for incident in incidents:
        name = incident.service or UNKNOWN_SERVICE
        downtime[name] = downtime.get(name, timedelta(0)) + incident_overlap(
            incident, period_start, period_end
        )

    results = []
    for name in sorted(downtime):
        service_downtime = max(downtime[name], timedelta(0))
        availability = _clamp(100 - (service_downtime / period) * 100, 0.0, 100.0)
        results.append(
            ServiceAvailability(
                service=name,
                availability_percent=availability,
                downtime_minutes=int(service_downtime.total_seconds() // 60),
                period_start=period_start,
                period_end=period_end,
            )
        )

    return results


def is_publicly_open(incident: Incident) -> bool:
    return incident.status in PUBLICLY_OPEN_STATUSES


def derive_overall_status(incidents: Iterable[Incident]) -> OverallStatus:
    """
    Overall status label from publicly open incidents

    Any open critical incident means a major outage; otherwise any open
    incident means degraded performance. A major outage is never downgraded.
    """
    status = OverallStatus.OPERATIONAL
    for incident in incidents:
        if not is_publicly_open(incident):
            continue
        if incident.severity == Severity.CRITICAL:
            status = OverallStatus.MAJOR_OUTAGE
        elif status == OverallStatus.OPERATIONAL:
            status = OverallStatus.DEGRADED_PERFORMANCE
    return status
