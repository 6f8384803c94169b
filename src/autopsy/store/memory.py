"""
In-memory store implementation

Thread-safe store for development, tests and single-process deployments.
Callers always receive copies, never the stored objects themselves.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Callable

from ..models import (
    RESOLVED_STATUS,
    UNKNOWN_SERVICE,
    Alert,
    AlertStatus,
    Incident,
    Service,
    TriageReport,
    as_utc,
    utcnow,
)
from .base import AlertStore, RecordNotFoundError

logger = logging.getLogger(__name__)


class MemoryStore(AlertStore):
    """
    Thread-safe in-memory store

    Identities come from per-collection sequences guarded by the same
    re-entrant lock as the data, so concurrent writers never share an id.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        """
        Initialize memory store

        Args:
            clock: Source of "now" for created_at/resolved_at stamps
        """
        self._clock = clock
        self._lock = threading.RLock()

        self._alerts: dict[int, Alert] = {}
        self._incidents: dict[int, Incident] = {}
        self._services: dict[str, Service] = {}
        self._sequences: dict[str, int] = {"alert": 0, "incident": 0, "service": 0}

    def _next_id(self, kind: str) -> int:
        self._sequences[kind] += 1
        return self._sequences[kind]

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _on_change(self) -> None:
        """Hook invoked under the lock after every mutation"""

    @contextmanager
    def _mutation(self):
        """
        Hold the lock for one mutation and undo it if the mutation fails

        Stored records are replaced, never edited in place; the collections
        are restored from shallow copies.
        """
        with self._lock:
            saved = (
                dict(self._alerts),
                dict(self._incidents),
                dict(self._services),
                dict(self._sequences),
            )
            try:
                yield
            except Exception:
                self._alerts, self._incidents, self._services, self._sequences = saved
                raise

    def _get_alert(self, alert_id: int) -> Alert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise RecordNotFoundError("alert", alert_id)
        return alert

    async def save_alert(self, alert: Alert) -> Alert:
        with self._mutation():
            stored = alert.model_copy(
                deep=True,
                update={
                    "id": self._next_id("alert"),
                    "created_at": self._now(),
                    "status": alert.status or AlertStatus.RECEIVED,
                },
            )
            self._alerts[stored.id] = stored
            self._on_change()

        logger.debug(f"Saved alert {stored.display_id}")
        return stored.model_copy(deep=True)

    async def update_alert_triage(self, alert_id: int, report: TriageReport) -> None:
        with self._mutation():
            alert = self._get_alert(alert_id)
            self._alerts[alert_id] = alert.model_copy(
                update={
                    "triage": report.model_copy(deep=True),
                    "status": AlertStatus.TRIAGED,
                }
            )
            self._on_change()

    async def update_alert_status(self, alert_id: int, status: AlertStatus) -> None:
        with self._mutation():
            alert = self._get_alert(alert_id)
            self._alerts[alert_id] = alert.model_copy(
                update={"status": AlertStatus(status)}
            )
            self._on_change()

    def _ensure_service_locked(self, name: str) -> Service:
        name = name or UNKNOWN_SERVICE
        service = self._services.get(name)
        if service is None:
            service = Service(id=self._next_id("service"), name=name, created_at=self._now())
            self._services[name] = service
            logger.info(f"Registered service '{name}' as {service.display_id}")
        return service

    async def ensure_service(self, name: str) -> Service:
        with self._mutation():
            known = len(self._services)
            service = self._ensure_service_locked(name)
            if len(self._services) != known:
                self._on_change()
        return service.model_copy(deep=True)

    async def create_incident(self, incident: Incident) -> Incident:
        with self._mutation():
            now = self._now()
            update = {
                "id": self._next_id("incident"),
                "created_at": incident.created_at or now,
                "service": incident.service or UNKNOWN_SERVICE,
            }
            if incident.status == RESOLVED_STATUS and incident.resolved_at is None:
                update["resolved_at"] = now

            stored = incident.model_copy(deep=True, update=update)
            self._ensure_service_locked(stored.service)
            self._incidents[stored.id] = stored
            self._on_change()

        logger.debug(f"Created incident {stored.display_id} for '{stored.service}'")
        return stored.model_copy(deep=True)

    async def alerts(self) -> list[Alert]:
        with self._lock:
            return [alert.model_copy(deep=True) for alert in self._alerts.values()]

    async def incidents(self) -> list[Incident]:
        with self._lock:
            return [
                incident.model_copy(deep=True) for incident in self._incidents.values()
            ]

    async def services(self) -> list[Service]:
        with self._lock:
            return [
                self._services[name].model_copy(deep=True)
                for name in sorted(self._services)
            ]
