"""
Core data models for autopsy

Defines alerts, triage reports, incidents, services and the availability
snapshot shapes using Pydantic for validation and serialization. Python
attributes are snake_case; the serialized shape is camelCase.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

UNKNOWN_SERVICE = "unknown"
DEFAULT_ALERT_SOURCE = "grafana"
RESOLVED_STATUS = "resolved"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Read a naive datetime as UTC and convert an aware one to UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_display_id(prefix: str, record_id: Optional[int]) -> Optional[str]:
    """Render a store identity as a human-facing id, e.g. ``alt-000042``"""
    if record_id is None:
        return None
    return f"{prefix}-{record_id:06d}"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    RECEIVED = "received"
    TRIAGED = "triaged"
    INCIDENT_OPEN = "incident_open"


class Decision(str, Enum):
    """Remediation path chosen by triage"""

    CREATE_ISSUE = "create_issue"
    START_INCIDENT = "start_incident"
    AUTO_FIX = "auto_fix"


class Confidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OverallStatus(str, Enum):
    OPERATIONAL = "operational"
    DEGRADED_PERFORMANCE = "degraded_performance"
    MAJOR_OUTAGE = "major_outage"


class AutopsyModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("*", mode="after")
    @classmethod
    def _utc_datetimes(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return as_utc(value)
        return value

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON-compatible boundary shape"""
        return self.model_dump(mode="json", by_alias=True)


class StoredRecord(AutopsyModel):
    """Record whose integer identity is assigned by the store"""

    id_prefix: ClassVar[str] = "rec"

    id: Optional[int] = None

    @computed_field
    @property
    def display_id(self) -> Optional[str]:
        return format_display_id(self.id_prefix, self.id)


class TriageTimelineStep(AutopsyModel):
    """One step of the triage narrative"""

    phase: str
    detail: str
    timestamp: datetime


class TriageReport(AutopsyModel):
    """Triage classification result attached to an alert"""

    summary: str
    likely_root_cause: str
    suggested_actions: list[str] = Field(default_factory=list)
    decision: Decision
    issue_title: str = ""
    auto_fix_plan: list[str] = Field(default_factory=list)
    timeline: list[TriageTimelineStep] = Field(default_factory=list)
    confidence: Confidence
    reviewed_at: datetime

    @model_validator(mode="after")
    def _check_decision_payload(self) -> "TriageReport":
        if bool(self.issue_title) != (self.decision == Decision.CREATE_ISSUE):
            raise ValueError("issue_title must be set iff decision is create_issue")
        if bool(self.auto_fix_plan) != (self.decision == Decision.AUTO_FIX):
            raise ValueError("auto_fix_plan must be set iff decision is auto_fix")
        return self


class Alert(StoredRecord):
    """Inbound production alert"""

    id_prefix: ClassVar[str] = "alt"

    source: str = ""
    title: str = ""
    description: str = ""
    severity: Severity
    status: Optional[AlertStatus] = None
    labels: dict[str, str] = Field(default_factory=dict)
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    triage: Optional[TriageReport] = None

    @field_validator("status", mode="before")
    @classmethod
    def _empty_status(cls, value: Any) -> Any:
        return value or None

    @field_validator("labels", mode="before")
    @classmethod
    def _stringify_labels(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {
                str(key): "" if item is None else str(item)
                for key, item in value.items()
            }
        return value

    @field_validator("payload", mode="before")
    @classmethod
    def _empty_payload(cls, value: Any) -> Any:
        return {} if value is None else value

    def label(self, key: str) -> str:
        """Return a label value, or an empty string when it is blank"""
        value = self.labels.get(key) or ""
        return value if value.strip() else ""


class Service(StoredRecord):
    """Named logical component incidents are attributed to"""

    id_prefix: ClassVar[str] = "svc"

    name: str
    description: str = ""
    created_at: Optional[datetime] = None


class Incident(StoredRecord):
    """Tracked production incident"""

    id_prefix: ClassVar[str] = "inc"

    alert_id: Optional[int] = None
    service: str = UNKNOWN_SERVICE
    title: str = ""
    severity: Severity
    status: str = "investigating"
    status_page_url: str = ""
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_resolution(self) -> "Incident":
        if self.resolved_at is not None and self.status != RESOLVED_STATUS:
            raise ValueError(
                f"resolved_at is only valid for resolved incidents (status={self.status!r})"
            )
        return self

    @property
    def is_resolved(self) -> bool:
        return self.status == RESOLVED_STATUS


class AlertOutcome(AutopsyModel):
    """Result of ingesting one alert"""

    alert: Alert
    incident: Optional[Incident] = None


class ServiceAvailability(AutopsyModel):
    """Per-service availability over a reporting window"""

    service: str
    availability_percent: float = Field(ge=0.0, le=100.0)
    downtime_minutes: int = Field(ge=0)
    period_start: datetime
    period_end: datetime


class StatusPageIncident(AutopsyModel):
    """Publicly visible open incident"""

    id: Optional[str] = None
    service: str
    title: str
    severity: Severity
    status: str
    declared_at: Optional[datetime] = None
    status_page_url: str = ""
    current_message: str
    response_playbook: list[str] = Field(default_factory=list)


class PublicStatusPage(AutopsyModel):
    """Point-in-time public status snapshot"""

    overall_status: OverallStatus = OverallStatus.OPERATIONAL
    updated_at: datetime
    period_start: datetime
    period_end: datetime
    services: list[ServiceAvailability] = Field(default_factory=list)
    incidents: list[StatusPageIncident] = Field(default_factory=list)
