"""
autopsy - alert triage, incident orchestration and availability reporting

Classifies production alerts, opens incidents when triage calls for it and
computes a public availability snapshot per service.
"""

from .version import __version__

from .availability import compute_availability, derive_overall_status
from .config import AutopsyConfig
from .orchestrator import IncidentOrchestrator, PersistenceError, create_alert
from .status_page import build_status_page, get_status_page
from .triage import HeuristicAgent

__all__ = [
    "create_alert",
    "compute_availability",
    "derive_overall_status",
    "build_status_page",
    "get_status_page",
    "IncidentOrchestrator",
    "PersistenceError",
    "HeuristicAgent",
    "AutopsyConfig",
    "__version__",
]
