"""
Command-line entry point for the dashboard monitor.
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import threading
from pathlib import Path

from kwork_monitor.config import get_monitor_settings
from kwork_monitor.diagnostics import DiagnosticLog
from kwork_monitor.domain.metrics import CollectionConfig, format_timestamp, normalize_interval
from kwork_monitor.logging_utils import configure_logging
from kwork_monitor.main import check_schema
from kwork_monitor.scheduler.jobs import build_orchestrator, build_storage
from kwork_monitor.scheduler.orchestrator import format_minutes

logger = logging.getLogger(__name__)


def _run(_: argparse.Namespace) -> int:
    check_schema()
    orchestrator = build_orchestrator()
    stop = threading.Event()

    def _request_stop(signum: int, _frame: object) -> None:
        logger.info("Received signal %s, stopping collector", signum)
        stop.set()

    signal.signal(signal.SIGINT, _request_stop)
    signal.signal(signal.SIGTERM, _request_stop)

    orchestrator.start()
    try:
        stop.wait()
    finally:
        orchestrator.shutdown(wait=True)
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from kwork_monitor.main import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)
    return 0


def _collect_once(_: argparse.Namespace) -> int:
    check_schema()
    settings = get_monitor_settings()
    orchestrator = build_orchestrator(settings=settings)
    orchestrator.channel.start()
    orchestrator.scheduler.start()
    try:
        orchestrator.run_cycle()
        # Injection, then teardown, each follow on a fixed delay.
        threading.Event().wait(
            settings.page_load_delay_seconds
            + settings.render_settle_seconds
            + settings.teardown_grace_seconds
            + 1.0
        )
    finally:
        orchestrator.shutdown(wait=True)

    history = orchestrator.storage.get_history()
    if history:
        print(json.dumps(history[-1].to_payload(), ensure_ascii=False, indent=2))
    return 0


def _set_interval(args: argparse.Namespace) -> int:
    interval = normalize_interval(args.minutes)
    storage = build_storage()
    storage.set_config(CollectionConfig(interval_minutes=interval))
    DiagnosticLog(storage=storage).log(
        f"Interval set to {format_minutes(interval)} minutes (applies on next start)"
    )
    print(json.dumps({"collectInterval": interval}))
    return 0


def _show(_: argparse.Namespace) -> int:
    storage = build_storage()
    last_updated = storage.get_last_updated()
    payload = {
        "metrics": [record.to_payload() for record in storage.get_history()],
        "lastUpdated": format_timestamp(last_updated) if last_updated else None,
        "collectInterval": storage.get_config().interval_minutes,
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def _export_logs(args: argparse.Namespace) -> int:
    diagnostics = DiagnosticLog(storage=build_storage())
    output = Path(args.output) if args.output else Path(diagnostics.export_filename())
    output.write_text(diagnostics.export_text(), encoding="utf-8")
    print(str(output))
    return 0


def _clear_logs(_: argparse.Namespace) -> int:
    DiagnosticLog(storage=build_storage()).clear()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kwork-monitor",
        description="Periodically collect kwork dashboard metrics.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("run", help="Run the collector until interrupted.").set_defaults(func=_run)

    serve = subparsers.add_parser("serve", help="Run the collector behind the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.set_defaults(func=_serve)

    subparsers.add_parser(
        "collect-once",
        help="Run a single visit/extract/teardown cycle and print the record.",
    ).set_defaults(func=_collect_once)

    set_interval = subparsers.add_parser(
        "set-interval",
        help="Persist the collection interval in minutes (applied on next start).",
    )
    set_interval.add_argument("minutes", type=float)
    set_interval.set_defaults(func=_set_interval)

    subparsers.add_parser("show", help="Print the collected history as JSON.").set_defaults(func=_show)

    export_logs = subparsers.add_parser("export-logs", help="Write diagnostic logs to a text file.")
    export_logs.add_argument("--output", default=None, help="Destination path.")
    export_logs.set_defaults(func=_export_logs)

    subparsers.add_parser("clear-logs", help="Remove all diagnostic logs.").set_defaults(func=_clear_logs)
    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
