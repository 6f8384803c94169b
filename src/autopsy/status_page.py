"""
Public status page assembly

Combines the availability snapshot, the overall status label and the list
of publicly open incidents for a reporting window ending now.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from .availability import compute_availability, derive_overall_status, is_publicly_open
from .config import AutopsyConfig, StatusPageConfig, get_config
from .models import Incident, PublicStatusPage, Service, StatusPageIncident, utcnow
from .observability.metrics import get_metrics
from .observability.tracer import trace_async
from .orchestrator import PersistenceError
from .store import AlertStore

logger = logging.getLogger(__name__)

CURRENT_MESSAGE = (
    "Incident declared. Command role assigned, communications started, "
    "mitigation in progress."
)

RESPONSE_PLAYBOOK = (
    "Assign incident commander and define communication cadence",
    "Assess customer impact against SLOs and error budget policy",
    "Stabilize service and execute mitigation plan",
    "Capture timeline and prepare blameless postmortem",
)


def parse_period_hours(raw: Any) -> Optional[int]:
    """Parse a periodHours value from the boundary; None when unusable"""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def resolve_period(
    period_hours: Any,
    now: datetime,
    default_hours: int = 24,
    max_hours: int = 24 * 30,
) -> tuple[datetime, datetime]:
    """
    Turn a requested window length into ``(period_start, period_end)``

    Values that do not parse, or fall outside ``1..max_hours``, use the
    default window instead of producing a degenerate one.
    """
    hours = parse_period_hours(period_hours)
    if hours is None or not 1 <= hours <= max_hours:
        if period_hours is not None:
            logger.debug(f"periodHours={period_hours!r} out of range, using {default_hours}h")
        hours = default_hours
    return now - timedelta(hours=hours), now


def to_status_page_incident(incident: Incident) -> StatusPageIncident:
    return StatusPageIncident(
        id=incident.display_id,
        service=incident.service,
        title=incident.title,
        severity=incident.severity,
        status=incident.status,
        declared_at=incident.created_at,
        status_page_url=incident.status_page_url,
        current_message=CURRENT_MESSAGE,
        response_playbook=list(RESPONSE_PLAYBOOK),
    )


def build_status_page(
    services: list[Service],
    incidents: list[Incident],
    now: Optional[datetime] = None,
    period_hours: Any = None,
    settings: Optional[StatusPageConfig] = None,
) -> PublicStatusPage:
    """
    Build a point-in-time public status snapshot

    Args:
        services: Known services
        incidents: All incidents
        now: End of the window; defaults to the current UTC time
        period_hours: Requested window length, as an int or raw query value
        settings: Window defaults and bounds

    Returns:
        Status page with availability, overall status and open incidents
    """
    settings = settings or StatusPageConfig()
    now = now or utcnow()
    period_start, period_end = resolve_period(
        period_hours,
        now,
        default_hours=settings.default_period_hours,
        max_hours=settings.max_period_hours,
    )

    open_incidents = [incident for incident in incidents if is_publicly_open(incident)]

    page = PublicStatusPage(
        overall_status=derive_overall_status(open_incidents),
        updated_at=now,
        period_start=period_start,
        period_end=period_end,
        services=compute_availability(services, incidents, period_start, period_end),
        incidents=[to_status_page_incident(incident) for incident in open_incidents],
    )

    metrics = get_metrics()
    if metrics:
        metrics.record_status_page(
            page.overall_status.value,
            {entry.service: entry.availability_percent for entry in page.services},
        )

    return page


@trace_async("status_page.get", record=("period_hours",))
async def get_status_page(
    store: AlertStore,
    period_hours: Any = None,
    config: Optional[AutopsyConfig] = None,
) -> PublicStatusPage:
    """
    Read services and incidents from the store and build the status page

    Raises:
        PersistenceError: If the store cannot be read
    """
    config = config or get_config()

    try:
        incidents = await store.incidents()
        services = await store.services()
    except Exception as e:
        logger.error(f"Failed to read status page inputs: {e}")
        raise PersistenceError("read_status_inputs", str(e)) from e

    page = build_status_page(
        services, incidents, period_hours=period_hours, settings=config.status_page
    )
    logger.info(
        f"Status page built: {page.overall_status.value}, "
        f"{len(page.services)} services, {len(page.incidents)} open incidents"
    )
    return page
