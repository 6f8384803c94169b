"""
Base persistence interface

Defines the abstract store contract the orchestrator and the status page
consume, and the store error taxonomy.
"""

from abc import ABC, abstractmethod

from ..models import Alert, AlertStatus, Incident, Service, TriageReport


class StoreError(Exception):
    """Base exception for persistence failures"""


class RecordNotFoundError(StoreError):
    """Raised when an update targets a record that does not exist"""

    def __init__(self, kind: str, record_id: int):
        super().__init__(f"{kind} {record_id} not found")
        self.kind = kind
        self.record_id = record_id


class AlertStore(ABC):
    """
    Abstract base class for alert/incident/service stores

    Stores own identity: they assign ids and creation timestamps. All
    methods are coroutines; cancelling the awaiting task is the caller's
    cancellation signal.
    """

    @abstractmethod
    async def save_alert(self, alert: Alert) -> Alert:
        """
        Persist a new alert

        Args:
            alert: Alert to insert; its id and created_at are ignored

        Returns:
            Stored copy with id, created_at and a default status assigned
        """

    @abstractmethod
    async def update_alert_triage(self, alert_id: int, report: TriageReport) -> None:
        """
        Attach a triage report and mark the alert triaged

        Raises:
            RecordNotFoundError: If the alert does not exist
        """

    @abstractmethod
    async def update_alert_status(self, alert_id: int, status: AlertStatus) -> None:
        """
        Set an alert's status

        Raises:
            RecordNotFoundError: If the alert does not exist
        """

    @abstractmethod
    async def ensure_service(self, name: str) -> Service:
        """
        Idempotent upsert by name

        Returns:
            The existing service with this name, or a newly created one
        """

    @abstractmethod
    async def create_incident(self, incident: Incident) -> Incident:
        """
        Persist a new incident

        Assigns id, defaults created_at to now and service to "unknown",
        and stamps resolved_at for incidents created already resolved.
        """

    @abstractmethod
    async def alerts(self) -> list[Alert]:
        """All alerts, oldest first"""

    @abstractmethod
    async def incidents(self) -> list[Incident]:
        """All incidents, oldest first"""

    @abstractmethod
    async def services(self) -> list[Service]:
        """All services, ordered by name"""

    async def close(self) -> None:
        """Release store resources"""
