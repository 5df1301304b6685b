"""
kwork_monitor/schemas/metrics.py

Request/response schemas for the viewer and configuration API.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class MetricRecordResponse(BaseModel):
    """
    One collected observation.
    """

    date: datetime
    views: int = Field(..., ge=0)
    sales: int = Field(..., ge=0)
    earned: int = Field(..., ge=0)
    competition: str


class MetricHistoryResponse(BaseModel):
    """
    Full history, oldest first, plus the time of the latest append.
    """

    metrics: list[MetricRecordResponse] = Field(default_factory=list)
    last_updated: datetime | None = None


class CollectionConfigResponse(BaseModel):
    collect_interval: float = Field(..., gt=0)


class IntervalUpdateRequest(BaseModel):
    """
    Payload for replacing the recurring collection interval.
    """

    interval: float = Field(..., gt=0, description="Minutes between collection cycles")


class IntervalUpdateAccepted(BaseModel):
    status: str = "accepted"
    interval: float


class LogEntryResponse(BaseModel):
    time: datetime
    message: str
