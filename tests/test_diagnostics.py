"""
tests/test_diagnostics.py

Pytest unit tests for DiagnosticLog and MetricsAccumulator.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from kwork_monitor.diagnostics import DiagnosticLog, render_log_text
from kwork_monitor.domain.metrics import LogEntry, MetricRecord
from kwork_monitor.services.accumulator import MetricsAccumulator
from kwork_monitor.storage import SQLAlchemyMetricsStorage

T0 = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


class TestDiagnosticLog:
    def test_log_persists_entry(self, storage: SQLAlchemyMetricsStorage) -> None:
        diagnostics = DiagnosticLog(storage=storage, clock=lambda: T0)

        entry = diagnostics.log("Auto-collecting metrics...")

        assert entry == LogEntry(time=T0, message="Auto-collecting metrics...")
        assert diagnostics.entries() == [entry]

    def test_export_renders_one_line_per_entry(self, storage: SQLAlchemyMetricsStorage) -> None:
        diagnostics = DiagnosticLog(storage=storage, clock=lambda: T0)
        diagnostics.log("first")
        diagnostics.log("second")

        assert diagnostics.export_text() == (
            "[2026-10-19T08:00:00+00:00] first\n[2026-10-19T08:00:00+00:00] second"
        )

    def test_export_of_empty_log_is_empty(self) -> None:
        assert render_log_text([]) == ""

    def test_export_filename_uses_date(self, storage: SQLAlchemyMetricsStorage) -> None:
        diagnostics = DiagnosticLog(storage=storage, clock=lambda: T0)

        assert diagnostics.export_filename() == "kwork_logs_2026-10-19.log"
        assert diagnostics.export_filename(date(2025, 1, 2)) == "kwork_logs_2025-01-02.log"

    def test_clear(self, storage: SQLAlchemyMetricsStorage) -> None:
        diagnostics = DiagnosticLog(storage=storage, clock=lambda: T0)
        diagnostics.log("x")

        diagnostics.clear()

        assert diagnostics.entries() == []


class TestMetricsAccumulator:
    def test_accept_appends_and_logs_summary(self, storage: SQLAlchemyMetricsStorage) -> None:
        diagnostics = DiagnosticLog(storage=storage, clock=lambda: T0)
        accumulator = MetricsAccumulator(storage=storage, diagnostics=diagnostics)
        record = MetricRecord(date=T0, views=3, sales=1, earned=900, competition="Средняя")

        stamp = accumulator.accept(record)

        assert stamp is not None
        assert storage.get_history() == [record]
        assert storage.get_last_updated() == stamp
        (entry,) = storage.get_logs()
        assert entry.message.startswith("Metrics saved: ")
        assert '"earned": 900' in entry.message
        assert "Средняя" in entry.message
