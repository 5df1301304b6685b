"""
Storage layer interface for the monitor's persisted state.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from kwork_monitor.domain.metrics import CollectionConfig, LogEntry, MetricRecord

INTERVAL_KEY = "collectInterval"
METRICS_KEY = "metrics"
LAST_UPDATED_KEY = "lastUpdated"
LOGS_KEY = "logs"


class MetricsStorage(ABC):
    """
    Typed access to the persisted history, collection config and diagnostics.

    Implementations must never raise on an unavailable backend: reads fall
    back to empty/default values and writes become no-ops.
    """

    @abstractmethod
    def get_history(self) -> list[MetricRecord]:
        """
        Return the full metric history, oldest first.
        """

    @abstractmethod
    def append_record(self, record: MetricRecord) -> datetime | None:
        """
        Append one record and stamp ``lastUpdated``.

        Returns the stamp that was written, or None if nothing was persisted.
        """

    @abstractmethod
    def get_last_updated(self) -> datetime | None:
        """
        Return the timestamp of the most recent append.
        """

    @abstractmethod
    def get_config(self) -> CollectionConfig:
        """
        Return the persisted collection config, defaulted when unset.
        """

    @abstractmethod
    def set_config(self, config: CollectionConfig) -> None:
        """
        Persist the collection config.
        """

    @abstractmethod
    def get_logs(self) -> list[LogEntry]:
        """
        Return all diagnostic entries, oldest first.
        """

    @abstractmethod
    def append_log(self, entry: LogEntry) -> None:
        """
        Append one diagnostic entry.
        """

    @abstractmethod
    def clear_logs(self) -> None:
        """
        Remove every diagnostic entry.
        """
