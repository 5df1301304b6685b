"""
SQLAlchemy-backed key-value storage for the monitor's persisted state.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models import MonitorStateEntry
from kwork_monitor.domain.metrics import (
    CollectionConfig,
    LogEntry,
    MetricRecord,
    format_timestamp,
    parse_timestamp,
    utc_now,
)
from kwork_monitor.logging_utils import log_event
from kwork_monitor.storage.base import (
    INTERVAL_KEY,
    LAST_UPDATED_KEY,
    LOGS_KEY,
    METRICS_KEY,
    MetricsStorage,
)

logger = logging.getLogger(__name__)

_MISSING = object()


class SQLAlchemyMetricsStorage(MetricsStorage):
    """
    Persist monitor state as JSON values in the ``monitor_state`` table.

    Every mutation is a full read-modify-write of one key performed inside a
    single transaction while holding ``self._lock``, so concurrent appends
    from overlapping visits are serialized within the process.
    """

    def __init__(
        self,
        *,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_history(self) -> list[MetricRecord]:
        raw = self._read(METRICS_KEY, [])
        if not isinstance(raw, list):
            return []
        return [MetricRecord.from_payload(item) for item in raw]

    def append_record(self, record: MetricRecord) -> datetime | None:
        stamp = self._clock()

        def mutate(session: Session) -> None:
            history = self._load_value(session, METRICS_KEY, [])
            if not isinstance(history, list):
                history = []
            history.append(record.to_payload())
            self._store_values(
                session,
                {
                    METRICS_KEY: history,
                    LAST_UPDATED_KEY: format_timestamp(stamp),
                },
            )

        if not self._mutate("append_record", mutate):
            return None
        return stamp

    def get_last_updated(self) -> datetime | None:
        return parse_timestamp(self._read(LAST_UPDATED_KEY, None))

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def get_config(self) -> CollectionConfig:
        return CollectionConfig.from_raw(self._read(INTERVAL_KEY, None))

    def set_config(self, config: CollectionConfig) -> None:
        self._mutate(
            "set_config",
            lambda session: self._store_values(
                session,
                {INTERVAL_KEY: config.interval_minutes},
            ),
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_logs(self) -> list[LogEntry]:
        raw = self._read(LOGS_KEY, [])
        if not isinstance(raw, list):
            return []
        entries: list[LogEntry] = []
        for item in raw:
            entry = LogEntry.from_payload(item)
            if entry is not None:
                entries.append(entry)
        return entries

    def append_log(self, entry: LogEntry) -> None:
        def mutate(session: Session) -> None:
            logs = self._load_value(session, LOGS_KEY, [])
            if not isinstance(logs, list):
                logs = []
            logs.append(entry.to_payload())
            self._store_values(session, {LOGS_KEY: logs})

        self._mutate("append_log", mutate)

    def clear_logs(self) -> None:
        def mutate(session: Session) -> None:
            row = session.get(MonitorStateEntry, LOGS_KEY)
            if row is not None:
                session.delete(row)

        self._mutate("clear_logs", mutate)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _read(self, key: str, default: Any) -> Any:
        try:
            with self._session_factory() as session:
                return self._load_value(session, key, default)
        except SQLAlchemyError as exc:
            log_event(
                logger,
                logging.WARNING,
                "state_storage_unavailable",
                operation="read",
                key=key,
                error=str(exc),
            )
            return default

    def _mutate(self, operation: str, mutate: Callable[[Session], None]) -> bool:
        with self._lock:
            try:
                with self._session_factory() as session:
                    try:
                        mutate(session)
                        session.commit()
                    except SQLAlchemyError:
                        session.rollback()
                        raise
            except SQLAlchemyError as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "state_storage_unavailable",
                    operation=operation,
                    error=str(exc),
                )
                return False
        return True

    @staticmethod
    def _load_value(session: Session, key: str, default: Any) -> Any:
        value = session.scalar(
            select(MonitorStateEntry.value).where(MonitorStateEntry.key == key)
        )
        if value is None:
            return default
        return value

    @staticmethod
    def _store_values(session: Session, values: Mapping[str, Any]) -> None:
        for key, value in values.items():
            row = session.get(MonitorStateEntry, key)
            if row is None:
                session.add(MonitorStateEntry(key=key, value=value))
            else:
                # JSON columns are not mutation-tracked; assign a fresh object.
                row.value = value
