"""
kwork_monitor/domain package marker.
"""

from kwork_monitor.domain.messages import (
    ChannelMessage,
    IntervalUpdateRequested,
    MetricsDelivered,
    parse_message,
)
from kwork_monitor.domain.metrics import (
    COMPETITION_DEFAULT,
    DEFAULT_INTERVAL_MINUTES,
    CollectionConfig,
    LogEntry,
    MetricRecord,
)

__all__ = [
    "COMPETITION_DEFAULT",
    "ChannelMessage",
    "CollectionConfig",
    "DEFAULT_INTERVAL_MINUTES",
    "IntervalUpdateRequested",
    "LogEntry",
    "MetricRecord",
    "MetricsDelivered",
    "parse_message",
]
