"""
kwork_monitor/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from kwork_monitor.scheduler.orchestrator import CollectionOrchestrator


def get_orchestrator(request: Request) -> CollectionOrchestrator:
    """
    Return the orchestrator attached to the running application.
    """

    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Collector is not running.",
        )
    return orchestrator
