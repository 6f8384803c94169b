"""
Triage engine

Classifies alerts into one of three remediation paths:
- TriageAgent: protocol every agent implements
- TriageRule / evaluate_rules: ordered, last-match-wins rule evaluation
- HeuristicAgent: the built-in rule-based agent
"""

from .base import (
    AgentRegistry,
    TriageAgent,
    TriageRule,
    evaluate_rules,
    register_agent,
    registry,
)
from .heuristic import (
    AUTO_FIX_PLAN,
    DECISION_RULES,
    ROOT_CAUSE_RULES,
    SUGGESTED_ACTIONS,
    DecisionOutcome,
    HeuristicAgent,
)

__all__ = [
    "registry",
    "AgentRegistry",
    "TriageAgent",
    "TriageRule",
    "evaluate_rules",
    "register_agent",
    "HeuristicAgent",
    "DecisionOutcome",
    "DECISION_RULES",
    "ROOT_CAUSE_RULES",
    "SUGGESTED_ACTIONS",
    "AUTO_FIX_PLAN",
]
