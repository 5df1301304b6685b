"""
Collection scheduling: orchestrator and wiring.
"""

from kwork_monitor.scheduler.jobs import build_orchestrator, build_scheduler
from kwork_monitor.scheduler.orchestrator import (
    COLLECT_JOB_ID,
    CollectionOrchestrator,
    VisitState,
)

__all__ = [
    "COLLECT_JOB_ID",
    "CollectionOrchestrator",
    "VisitState",
    "build_orchestrator",
    "build_scheduler",
]
