"""
tests/test_cli.py

Pytest tests for the storage-only CLI commands.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from kwork_monitor import cli
from kwork_monitor.domain.metrics import LogEntry, MetricRecord
from kwork_monitor.storage import SQLAlchemyMetricsStorage

T0 = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def _use_test_storage(monkeypatch: pytest.MonkeyPatch, storage: SQLAlchemyMetricsStorage) -> None:
    monkeypatch.setattr(cli, "build_storage", lambda: storage)


def test_set_interval_persists(storage: SQLAlchemyMetricsStorage, capsys: pytest.CaptureFixture) -> None:
    assert cli.main(["set-interval", "15"]) == 0

    assert storage.get_config().interval_minutes == 15.0
    assert json.loads(capsys.readouterr().out) == {"collectInterval": 15.0}


def test_set_interval_invalid_falls_back(storage: SQLAlchemyMetricsStorage) -> None:
    cli.main(["set-interval", "0"])

    assert storage.get_config().interval_minutes == 1.0


def test_show(storage: SQLAlchemyMetricsStorage, capsys: pytest.CaptureFixture) -> None:
    storage.append_record(MetricRecord(date=T0, views=5, competition="Высокая"))

    cli.main(["show"])

    payload = json.loads(capsys.readouterr().out)
    assert [item["views"] for item in payload["metrics"]] == [5]
    assert payload["metrics"][0]["competition"] == "Высокая"
    assert payload["lastUpdated"] is not None
    assert payload["collectInterval"] == 1.0


def test_export_and_clear_logs(storage: SQLAlchemyMetricsStorage, tmp_path: Path) -> None:
    storage.append_log(LogEntry(time=T0, message="Metrics saved: {}"))
    output = tmp_path / "logs.txt"

    cli.main(["export-logs", "--output", str(output)])
    assert output.read_text(encoding="utf-8") == "[2026-10-19T08:00:00+00:00] Metrics saved: {}"

    cli.main(["clear-logs"])
    assert storage.get_logs() == []


def test_set_interval_logs_persisted_value(storage: SQLAlchemyMetricsStorage) -> None:
    cli.main(["set-interval", "0"])

    (entry,) = storage.get_logs()
    assert entry.message == "Interval set to 1 minutes (applies on next start)"
