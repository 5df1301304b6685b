"""
kwork_monitor/services/accumulator.py

Receives delivered records and folds them into the persisted history.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

from kwork_monitor.diagnostics import DiagnosticLog
from kwork_monitor.domain.metrics import MetricRecord
from kwork_monitor.logging_utils import log_event
from kwork_monitor.storage.base import MetricsStorage

logger = logging.getLogger(__name__)


class MetricsAccumulator:
    """
    Appends records to ``MetricsStorage`` and records a diagnostic summary.
    """

    def __init__(self, *, storage: MetricsStorage, diagnostics: DiagnosticLog) -> None:
        self._storage = storage
        self._diagnostics = diagnostics

    def accept(self, record: MetricRecord) -> datetime | None:
        stamp = self._storage.append_record(record)
        payload = record.to_payload()
        log_event(
            logger,
            logging.INFO,
            "metrics_stored",
            persisted=stamp is not None,
            **payload,
        )
        self._diagnostics.log("Metrics saved: " + json.dumps(payload, ensure_ascii=False))
        return stamp
