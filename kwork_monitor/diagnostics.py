"""
kwork_monitor/diagnostics.py

Persisted diagnostic log shared by every pipeline component.

Entries are mirrored to the standard logger and appended to the ``logs``
key of the state store. The plain-text export renders one
``[timestamp] message`` line per entry.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date, datetime

from kwork_monitor.domain.metrics import LogEntry, utc_now
from kwork_monitor.storage.base import MetricsStorage

logger = logging.getLogger(__name__)

EXPORT_FILENAME_PREFIX = "kwork_logs_"


class DiagnosticLog:
    """
    Append-only diagnostic log backed by ``MetricsStorage``.
    """

    def __init__(
        self,
        *,
        storage: MetricsStorage,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._clock = clock

    def log(self, message: str) -> LogEntry:
        entry = LogEntry(time=self._clock(), message=message)
        logger.info(message)
        self._storage.append_log(entry)
        return entry

    def entries(self) -> list[LogEntry]:
        return self._storage.get_logs()

    def clear(self) -> None:
        self._storage.clear_logs()

    def export_text(self) -> str:
        return render_log_text(self.entries())

    def export_filename(self, today: date | None = None) -> str:
        day = today or self._clock().date()
        return f"{EXPORT_FILENAME_PREFIX}{day.isoformat()}.log"


def render_log_text(entries: list[LogEntry]) -> str:
    return "\n".join(entry.render() for entry in entries)
