"""
kwork_monitor/schemas package marker.
"""

from kwork_monitor.schemas.metrics import (
    CollectionConfigResponse,
    IntervalUpdateAccepted,
    IntervalUpdateRequest,
    LogEntryResponse,
    MetricHistoryResponse,
    MetricRecordResponse,
)

__all__ = [
    "CollectionConfigResponse",
    "IntervalUpdateAccepted",
    "IntervalUpdateRequest",
    "LogEntryResponse",
    "MetricHistoryResponse",
    "MetricRecordResponse",
]
