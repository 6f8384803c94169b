"""
Base triage interface and rule primitives

Defines the protocol for triage agents, the ordered-rule evaluation used to
derive root causes and decisions, and the registry agents are looked up in.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from ..models import Alert, TriageReport

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class TriageAgent(Protocol):
    """
    Protocol for triage agents

    Agents classify an alert into a remediation path. They must be free of
    side effects and must always return a report.
    """

    name: str

    def review(self, alert: Alert) -> TriageReport:
        """
        Classify an alert

        Args:
            alert: The persisted alert to classify

        Returns:
            Triage report with decision and supporting narrative
        """
        ...


@dataclass(frozen=True)
class TriageRule(Generic[T]):
    """
    A named (predicate, outcome) pair

    Rules are evaluated in order and every matching rule replaces the result
    of the previous match, so the last matching rule wins.
    """

    name: str
    predicate: Callable[[Alert], bool]
    outcome: Callable[[Alert], T]

    def matches(self, alert: Alert) -> bool:
        return self.predicate(alert)


def evaluate_rules(rules: Sequence[TriageRule[T]], alert: Alert) -> T:
    """
    Evaluate ordered rules with last-match-wins semantics

    Raises:
        ValueError: If no rule matched; rule lists must open with a baseline
    """
    matched: Optional[TriageRule[T]] = None
    for rule in rules:
        if rule.matches(alert):
            matched = rule

    if matched is None:
        raise ValueError("No triage rule matched; rule list needs a baseline rule")

    logger.debug(f"Rule '{matched.name}' selected for alert {alert.display_id}")
    return matched.outcome(alert)


def always(_: Alert) -> bool:
    return True


def description_contains(needle: str) -> Callable[[Alert], bool]:
    """Case-insensitive substring predicate on the alert description"""
    lowered = needle.lower()

    def predicate(alert: Alert) -> bool:
        return lowered in alert.description.lower()

    return predicate


class AgentRegistry:
    """
    Registry for available triage agents

    Handles registration and instantiation of agents by name.
    """

    def __init__(self):
        self._agents: dict[str, type] = {}

    def register(self, agent_class: type) -> None:
        """Register an agent class"""
        name = getattr(agent_class, "name", None)
        if not name:
            raise ValueError(
                f"Agent class {agent_class.__name__} must have a 'name' attribute"
            )

        self._agents[name] = agent_class
        logger.debug(f"Registered triage agent: {name}")

    def get_available_agents(self) -> list[str]:
        return list(self._agents.keys())

    def create_agent(self, name: str) -> TriageAgent:
        """Create agent instance by name"""
        agent_class = self._agents.get(name)
        if agent_class is None:
            raise ValueError(
                f"Unknown triage agent '{name}'; available: {self.get_available_agents()}"
            )
        return agent_class()


registry = AgentRegistry()


def register_agent(agent_class: type) -> type:
    """Decorator for registering agent classes"""
    registry.register(agent_class)
    return agent_class
