"""
kwork_monitor/domain/messages.py

Messages carried over the collection channel.

Wire format (JSON-compatible dicts):

  {"type": "METRICS", "data": {...MetricRecord...}}
  {"type": "UPDATE_INTERVAL", "interval": 15}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from kwork_monitor.domain.metrics import MetricRecord, normalize_interval
from kwork_monitor.errors import UnknownMessageError

METRICS_TYPE = "METRICS"
UPDATE_INTERVAL_TYPE = "UPDATE_INTERVAL"


@dataclass(frozen=True)
class MetricsDelivered:
    """
    A freshly extracted record, sent from a visit to the accumulator.
    """

    record: MetricRecord

    def to_payload(self) -> dict[str, Any]:
        return {"type": METRICS_TYPE, "data": self.record.to_payload()}


@dataclass(frozen=True)
class IntervalUpdateRequested:
    """
    Request to replace the recurring collection trigger.
    """

    interval_minutes: float

    def to_payload(self) -> dict[str, Any]:
        return {"type": UPDATE_INTERVAL_TYPE, "interval": self.interval_minutes}


ChannelMessage = Union[MetricsDelivered, IntervalUpdateRequested]


def parse_message(payload: object) -> ChannelMessage:
    """
    Convert a wire payload into a typed channel message.

    Raises UnknownMessageError when the payload is not a dict or carries an
    unrecognised ``type``.
    """

    if not isinstance(payload, dict):
        raise UnknownMessageError(f"Channel payload must be a mapping, got {type(payload).__name__}.")

    message_type = payload.get("type")
    if message_type == METRICS_TYPE:
        return MetricsDelivered(record=MetricRecord.from_payload(payload.get("data")))
    if message_type == UPDATE_INTERVAL_TYPE:
        return IntervalUpdateRequested(interval_minutes=normalize_interval(payload.get("interval")))
    raise UnknownMessageError(f"Unknown channel message type: {message_type!r}")
