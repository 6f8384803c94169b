"""
Heuristic triage agent

Classifies alerts with fixed, ordered rules over severity, description and
labels. Output depends only on those fields plus the review time.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from ..models import Alert, Confidence, Decision, Severity, TriageReport, TriageTimelineStep, utcnow
from ..observability.metrics import get_metrics
from ..observability.tracer import set_attribute, trace_sync
from .base import TriageRule, always, description_contains, evaluate_rules, register_agent

logger = logging.getLogger(__name__)

SUGGESTED_ACTIONS = (
    "Check SLO burn rate and error budget policy per Google SRE guidance",
    "Review recent deploy and rollback if correlated",
    "Verify service-level indicators in logs/metrics dashboard",
)

AUTO_FIX_PLAN = (
    "Scale workers for affected queue by +20%",
    "Invalidate stale cache entries for impacted route",
    "Monitor recovery for 15 minutes before resolving",
)

DEFAULT_ROOT_CAUSE = "Insufficient telemetry for root-cause confidence"
TIMEOUT_ROOT_CAUSE = "Downstream dependency timeout causing user impact"


@dataclass(frozen=True)
class DecisionOutcome:
    """Everything a decision rule contributes to the report"""

    decision: Decision
    summary: str
    issue_title: str = ""
    auto_fix_plan: tuple[str, ...] = field(default_factory=tuple)


def _has_metric(alert: Alert) -> bool:
    return bool(alert.labels.get("metric"))


def _metric_anomaly(alert: Alert) -> str:
    # double-quoted, with embedded quotes and backslashes escaped
    metric = json.dumps(alert.labels["metric"], ensure_ascii=False)
    return f"Anomaly detected in metric {metric}; likely saturation/regression"


ROOT_CAUSE_RULES: tuple[TriageRule[str], ...] = (
    TriageRule("default", always, lambda alert: DEFAULT_ROOT_CAUSE),
    TriageRule("metric_anomaly", _has_metric, _metric_anomaly),
    TriageRule("dependency_timeout", description_contains("timeout"), lambda alert: TIMEOUT_ROOT_CAUSE),
)


def _is_high_risk(alert: Alert) -> bool:
    return alert.severity == Severity.CRITICAL or description_contains("customer")(alert)


def _is_retry_storm(alert: Alert) -> bool:
    return alert.severity == Severity.WARNING and description_contains("retry")(alert)


def _follow_up_issue(alert: Alert) -> DecisionOutcome:
    return DecisionOutcome(
        decision=Decision.CREATE_ISSUE,
        summary="Alert reviewed; routed for follow-up issue triage",
        issue_title=f"Follow-up: {alert.title} ({alert.severity.value})",
    )


def _start_incident(alert: Alert) -> DecisionOutcome:
    return DecisionOutcome(
        decision=Decision.START_INCIDENT,
        summary="High-risk customer impact detected; incident response should start now",
    )


def _auto_fix(alert: Alert) -> DecisionOutcome:
    return DecisionOutcome(
        decision=Decision.AUTO_FIX,
        summary="Alert appears remediable via safe automation",
        auto_fix_plan=AUTO_FIX_PLAN,
    )


# Order matters: auto_fix is evaluated after start_incident and wins when both match.
DECISION_RULES: tuple[TriageRule[DecisionOutcome], ...] = (
    TriageRule("follow_up_issue", always, _follow_up_issue),
    TriageRule("start_incident", _is_high_risk, _start_incident),
    TriageRule("auto_fix", _is_retry_storm, _auto_fix),
)


def derive_root_cause(alert: Alert) -> str:
    return evaluate_rules(ROOT_CAUSE_RULES, alert)


def select_decision(alert: Alert) -> DecisionOutcome:
    return evaluate_rules(DECISION_RULES, alert)


def derive_confidence(alert: Alert) -> Confidence:
    return Confidence.HIGH if alert.severity == Severity.CRITICAL else Confidence.MEDIUM


def build_timeline(
    root_cause: str, decision: Decision, now: datetime
) -> list[TriageTimelineStep]:
    """Four fixed phases, stamped relative to the review time"""
    return [
        TriageTimelineStep(
            phase="received",
            detail="Alert ingested and queued for AI triage",
            timestamp=now - timedelta(seconds=5),
        ),
        TriageTimelineStep(
            phase="context",
            detail="Correlated severity, labels, and recent error patterns",
            timestamp=now - timedelta(seconds=3),
        ),
        TriageTimelineStep(
            phase="analysis",
            detail=root_cause,
            timestamp=now - timedelta(seconds=1),
        ),
        TriageTimelineStep(
            phase="decision",
            detail=f"Decision: {decision.value}",
            timestamp=now,
        ),
    ]


@register_agent
class HeuristicAgent:
    """Rule-based triage agent; never fails and keeps no state"""

    name = "heuristic"

    @trace_sync("triage.review")
    def review(self, alert: Alert, now: Optional[datetime] = None) -> TriageReport:
        now = now or utcnow()

        root_cause = derive_root_cause(alert)
        outcome = select_decision(alert)
        confidence = derive_confidence(alert)

        set_attribute("triage.decision", outcome.decision.value)
        set_attribute("triage.confidence", confidence.value)

        report = TriageReport(
            summary=outcome.summary,
            likely_root_cause=root_cause,
            suggested_actions=list(SUGGESTED_ACTIONS),
            decision=outcome.decision,
            issue_title=outcome.issue_title,
            auto_fix_plan=list(outcome.auto_fix_plan),
            timeline=build_timeline(root_cause, outcome.decision, now),
            confidence=confidence,
            reviewed_at=now,
        )

        metrics = get_metrics()
        if metrics:
            metrics.record_triage_decision(outcome.decision.value, confidence.value)

        logger.info(
            f"Triaged alert {alert.display_id}: decision={outcome.decision.value} "
            f"confidence={confidence.value}"
        )
        return report
