"""
Incident Orchestrator - turns inbound alerts into persisted incident state

Persists the alert, runs triage, stores the report and, when triage decides
to start an incident, registers the service and opens the incident.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from .config import AutopsyConfig, get_config
from .models import (
    DEFAULT_ALERT_SOURCE,
    UNKNOWN_SERVICE,
    Alert,
    AlertOutcome,
    AlertStatus,
    Decision,
    Incident,
)
from .observability.metrics import get_metrics
from .observability.tracer import add_event, set_attribute, trace_async
from .store import AlertStore, create_store
from .triage import TriageAgent, registry

logger = logging.getLogger(__name__)

T = TypeVar("T")

INCIDENT_TITLE_PREFIX = "Auto-created incident for triaged alert: "
INCIDENT_OPENING_STATUS = "investigating"


class PersistenceError(Exception):
    """
    A store call failed while handling an alert

    Writes committed before the failure are not rolled back. ``alert_id`` is
    set once the alert itself was stored, which lets callers tell a triaged
    alert that lost its incident apart from a clean non-incident outcome.
    """

    def __init__(self, operation: str, message: str, alert_id: Optional[int] = None):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
        self.alert_id = alert_id


def normalize_alert(alert: Alert) -> Alert:
    """Fill the inbound defaults for source and status"""
    return alert.model_copy(
        update={
            "source": alert.source or DEFAULT_ALERT_SOURCE,
            "status": alert.status or AlertStatus.RECEIVED,
        }
    )


def resolve_service_name(alert: Alert) -> str:
    return alert.label("service") or UNKNOWN_SERVICE


class IncidentOrchestrator:
    """
    Alert ingestion orchestrator

    Sequences the store writes for one alert. The writes are independent and
    non-transactional: a failure aborts the remaining steps and surfaces as
    PersistenceError without compensating earlier writes.
    """

    def __init__(
        self,
        store: AlertStore,
        agent: Optional[TriageAgent] = None,
        config: Optional[AutopsyConfig] = None,
    ):
        self.config = config or get_config()
        self.store = store
        self.agent = agent or registry.create_agent(self.config.triage.agent)

    async def _persist(
        self,
        operation: str,
        call: Callable[..., Awaitable[T]],
        *args: Any,
        alert_id: Optional[int] = None,
    ) -> T:
        """Run one store call, converting any failure into PersistenceError"""
        try:
            return await call(*args)
        except Exception as e:
            logger.error(f"Store operation {operation} failed for alert {alert_id}: {e}")
            add_event("persistence_error", {"operation": operation, "error": str(e)})

            metrics = get_metrics()
            if metrics:
                metrics.record_persistence_error(operation)

            raise PersistenceError(operation, str(e), alert_id=alert_id) from e

    @trace_async("orchestrator.handle_create_alert")
    async def handle_create_alert(self, raw_alert: Union[Alert, dict[str, Any]]) -> AlertOutcome:
        """
        Ingest one alert

        Args:
            raw_alert: Alert model or its boundary dict shape

        Returns:
            The stored alert (triage attached) and the incident, if one was opened

        Raises:
            pydantic.ValidationError: If a dict input is not a valid alert
            PersistenceError: If any store call fails
        """
        if isinstance(raw_alert, Alert):
            alert = raw_alert
        else:
            alert = Alert.model_validate(raw_alert)

        metrics = get_metrics()
        if metrics:
            with metrics.track_active_operation("ingest"), metrics.time_operation(
                metrics.orchestration_duration
            ):
                return await self._handle(alert)
        return await self._handle(alert)

    async def _handle(self, alert: Alert) -> AlertOutcome:
        alert = normalize_alert(alert)
        alert = await self._persist("save_alert", self.store.save_alert, alert)
        set_attribute("alert.id", alert.display_id)

        metrics = get_metrics()
        if metrics:
            metrics.record_alert_ingested(alert.source, alert.severity.value)

        report = self.agent.review(alert)
        await self._persist(
            "update_alert_triage",
            self.store.update_alert_triage,
            alert.id,
            report,
            alert_id=alert.id,
        )
        alert = alert.model_copy(update={"triage": report, "status": AlertStatus.TRIAGED})

        if report.decision != Decision.START_INCIDENT:
            logger.info(
                f"Alert {alert.display_id} triaged as {report.decision.value}; no incident opened"
            )
            return AlertOutcome(alert=alert)

        incident = await self._open_incident(alert)
        alert = alert.model_copy(update={"status": AlertStatus.INCIDENT_OPEN})
        return AlertOutcome(alert=alert, incident=incident)

    async def _open_incident(self, alert: Alert) -> Incident:
        service_name = resolve_service_name(alert)
        await self._persist(
            "ensure_service",
            self.store.ensure_service,
            service_name,
            alert_id=alert.id,
        )

        incident = await self._persist(
            "create_incident",
            self.store.create_incident,
            Incident(
                alert_id=alert.id,
                service=service_name,
                title=INCIDENT_TITLE_PREFIX + alert.title,
                severity=alert.severity,
                status=INCIDENT_OPENING_STATUS,
                status_page_url=f"/status/{alert.display_id}",
            ),
            alert_id=alert.id,
        )

        await self._persist(
            "update_alert_status",
            self.store.update_alert_status,
            alert.id,
            AlertStatus.INCIDENT_OPEN,
            alert_id=alert.id,
        )

        set_attribute("incident.id", incident.display_id)
        add_event("incident_opened", {"service": service_name})

        metrics = get_metrics()
        if metrics:
            metrics.record_incident_created(service_name, alert.severity.value)

        logger.info(
            f"Opened incident {incident.display_id} for alert {alert.display_id} "
            f"on service '{service_name}'"
        )
        return incident


async def create_alert(
    alert_data: dict[str, Any], store: Optional[AlertStore] = None
) -> dict[str, Any]:
    """
    Main entry point for alert ingestion

    Args:
        alert_data: Alert dictionary in the boundary shape
        store: Store to write to; defaults to the configured backend

    Returns:
        Outcome dictionary with "alert" and, when opened, "incident"
    """
    config = get_config()
    orchestrator = IncidentOrchestrator(store or create_store(config), config=config)
    outcome = await orchestrator.handle_create_alert(alert_data)
    return outcome.model_dump(mode="json", by_alias=True, exclude_none=True)
