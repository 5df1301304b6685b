"""
kwork_monitor/api/routers/metrics.py

Viewer and configuration endpoints: history, interval, diagnostic logs.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import PlainTextResponse

from kwork_monitor.api.dependencies import get_orchestrator
from kwork_monitor.domain.messages import IntervalUpdateRequested
from kwork_monitor.scheduler.orchestrator import CollectionOrchestrator
from kwork_monitor.schemas.metrics import (
    CollectionConfigResponse,
    IntervalUpdateAccepted,
    IntervalUpdateRequest,
    LogEntryResponse,
    MetricHistoryResponse,
    MetricRecordResponse,
)

router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_model=MetricHistoryResponse)
def read_metrics(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> MetricHistoryResponse:
    """
    Return the collected history, oldest first.
    """

    storage = orchestrator.storage
    return MetricHistoryResponse(
        metrics=[
            MetricRecordResponse(
                date=record.date,
                views=record.views,
                sales=record.sales,
                earned=record.earned,
                competition=record.competition,
            )
            for record in storage.get_history()
        ],
        last_updated=storage.get_last_updated(),
    )


@router.get("/config", response_model=CollectionConfigResponse)
def read_config(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> CollectionConfigResponse:
    config = orchestrator.storage.get_config()
    return CollectionConfigResponse(collect_interval=config.interval_minutes)


@router.post(
    "/interval",
    response_model=IntervalUpdateAccepted,
    status_code=status.HTTP_202_ACCEPTED,
)
def update_interval(
    payload: IntervalUpdateRequest,
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> IntervalUpdateAccepted:
    """
    Queue an interval change; the orchestrator applies it asynchronously.
    """

    orchestrator.channel.send_payload(
        IntervalUpdateRequested(interval_minutes=payload.interval).to_payload()
    )
    return IntervalUpdateAccepted(interval=payload.interval)


@router.get("/logs", response_model=list[LogEntryResponse])
def read_logs(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> list[LogEntryResponse]:
    return [
        LogEntryResponse(time=entry.time, message=entry.message)
        for entry in orchestrator.diagnostics.entries()
    ]


@router.get("/logs/export", response_class=PlainTextResponse)
def export_logs(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> PlainTextResponse:
    """
    Download diagnostic logs as a plain-text file.
    """

    diagnostics = orchestrator.diagnostics
    filename = diagnostics.export_filename()
    return PlainTextResponse(
        diagnostics.export_text(),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.delete("/logs", status_code=status.HTTP_204_NO_CONTENT)
def clear_logs(
    orchestrator: CollectionOrchestrator = Depends(get_orchestrator),
) -> Response:
    orchestrator.diagnostics.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
