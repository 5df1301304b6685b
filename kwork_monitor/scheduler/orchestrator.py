"""
kwork_monitor/scheduler/orchestrator.py

APScheduler-driven collection orchestrator.

Cycle state machine
-------------------
  (timer fires)             -> VISIT_CREATED        isolated page opened
  + page_load_delay_seconds -> EXTRACTION_INJECTED  extractor injected, not awaited
  + teardown_grace_seconds  -> VISIT_TORN_DOWN      visit destroyed unconditionally

Each transition is its own one-shot ``date`` job, so nothing blocks the
scheduler between steps. Teardown is ordered after injection only by elapsed
time: a page that renders slower than the grace period yields no record for
that cycle, and the next cycle is the only recovery. The visit host must not
queue teardown behind a running extraction.

Channel messages
----------------
  MetricsDelivered        -> MetricsAccumulator.accept
  IntervalUpdateRequested -> replace the ``fetchMetrics`` job, persist interval
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta
from enum import Enum

from apscheduler.events import EVENT_JOB_ERROR, JobExecutionEvent
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler
from bs4 import BeautifulSoup

from kwork_monitor.config import MonitorSettings
from kwork_monitor.diagnostics import DiagnosticLog
from kwork_monitor.domain.messages import (
    ChannelMessage,
    IntervalUpdateRequested,
    MetricsDelivered,
)
from kwork_monitor.domain.metrics import CollectionConfig, normalize_interval, utc_now
from kwork_monitor.logging_utils import log_event
from kwork_monitor.scraping.channel import MessageChannel
from kwork_monitor.scraping.extractor import MetricsExtractor
from kwork_monitor.scraping.visits import InjectedScript, VisitHandle, VisitHost
from kwork_monitor.services.accumulator import MetricsAccumulator
from kwork_monitor.storage.base import MetricsStorage

logger = logging.getLogger(__name__)

COLLECT_JOB_ID = "fetchMetrics"


class VisitState(str, Enum):
    VISIT_CREATED = "visit_created"
    EXTRACTION_INJECTED = "extraction_injected"
    VISIT_TORN_DOWN = "visit_torn_down"


def format_minutes(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class CollectionOrchestrator:
    """
    Owns the recurring collection trigger and the per-visit lifecycle.
    """

    def __init__(
        self,
        *,
        settings: MonitorSettings,
        storage: MetricsStorage,
        visit_host: VisitHost,
        channel: MessageChannel,
        scheduler: BackgroundScheduler | None = None,
        diagnostics: DiagnosticLog | None = None,
        extractor: MetricsExtractor | None = None,
        accumulator: MetricsAccumulator | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._visit_host = visit_host
        self._channel = channel
        self._scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self._clock = clock
        self._diagnostics = diagnostics or DiagnosticLog(storage=storage, clock=clock)
        self._extractor = extractor or MetricsExtractor(diagnostics=self._diagnostics, clock=clock)
        self._accumulator = accumulator or MetricsAccumulator(
            storage=storage,
            diagnostics=self._diagnostics,
        )

        self._schedule_lock = threading.Lock()
        self._visit_lock = threading.Lock()
        self._visit_states: dict[str, VisitState] = {}
        self._handlers: dict[type, Callable[..., None]] = {
            MetricsDelivered: self._on_metrics_delivered,
            IntervalUpdateRequested: self._on_interval_update,
        }

        self._channel.set_handler(self.handle_message)
        self._scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)

    @property
    def scheduler(self) -> BackgroundScheduler:
        return self._scheduler

    @property
    def channel(self) -> MessageChannel:
        return self._channel

    @property
    def storage(self) -> MetricsStorage:
        return self._storage

    @property
    def diagnostics(self) -> DiagnosticLog:
        return self._diagnostics

    def visit_states(self) -> dict[str, VisitState]:
        with self._visit_lock:
            return dict(self._visit_states)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def install_schedule(self) -> float:
        """
        Read the persisted interval and (re)install the recurring job.
        """

        config = self._storage.get_config()
        interval = normalize_interval(config.interval_minutes)
        with self._schedule_lock:
            self._clear_collect_job()
            self._add_collect_job(interval)
        self._diagnostics.log(f"Auto-collect set to {format_minutes(interval)} minutes")
        return interval

    def start(self) -> None:
        self.install_schedule()
        self._channel.start()
        if not self._scheduler.running:
            self._scheduler.start()
        log_event(
            logger,
            logging.INFO,
            "orchestrator_started",
            jobs=len(self._scheduler.get_jobs()),
            dashboard_url=self._settings.dashboard_url,
        )

    def shutdown(self, *, wait: bool = True) -> None:
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        self._channel.stop()
        self._visit_host.shutdown()
        log_event(logger, logging.INFO, "orchestrator_stopped")

    # ------------------------------------------------------------------
    # Channel
    # ------------------------------------------------------------------

    def handle_message(self, message: ChannelMessage) -> None:
        handler = self._handlers.get(type(message))
        if handler is None:
            log_event(
                logger,
                logging.WARNING,
                "channel_message_unhandled",
                message_type=type(message).__name__,
            )
            return
        handler(message)

    def update_interval(self, interval_minutes: object) -> float:
        """
        Replace the recurring job with one at the new interval and persist it.
        In-flight visits are left alone.
        """

        interval = normalize_interval(interval_minutes)
        with self._schedule_lock:
            self._clear_collect_job()
            self._add_collect_job(interval)
        self._storage.set_config(CollectionConfig(interval_minutes=interval))
        self._diagnostics.log(f"Interval updated to {format_minutes(interval)} minutes")
        return interval

    def _on_metrics_delivered(self, message: MetricsDelivered) -> None:
        self._accumulator.accept(message.record)

    def _on_interval_update(self, message: IntervalUpdateRequested) -> None:
        self.update_interval(message.interval_minutes)

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    def run_cycle(self) -> VisitHandle:
        """
        Open a visit and schedule its injection. Runs on every timer fire.
        """

        self._diagnostics.log("Auto-collecting metrics...")
        self._prune_torn_down()
        handle = self._visit_host.open_visit(self._settings.dashboard_url)
        self._set_state(handle, VisitState.VISIT_CREATED)
        self._schedule_once(
            self._inject,
            handle,
            delay_seconds=self._settings.page_load_delay_seconds,
            job_id=f"inject:{handle.visit_id}",
        )
        return handle

    def _inject(self, handle: VisitHandle) -> None:
        try:
            self._visit_host.inject(handle, self.extraction_script())
            self._set_state(handle, VisitState.EXTRACTION_INJECTED)
        finally:
            self._schedule_once(
                self._teardown,
                handle,
                delay_seconds=self._settings.teardown_grace_seconds,
                job_id=f"teardown:{handle.visit_id}",
            )

    def _teardown(self, handle: VisitHandle) -> None:
        try:
            self._visit_host.close_visit(handle)
        finally:
            self._set_state(handle, VisitState.VISIT_TORN_DOWN)

    def extraction_script(self) -> InjectedScript:
        """
        One-shot script run inside a visit: extract and post the record.
        """

        extractor = self._extractor
        channel = self._channel

        def script(document: BeautifulSoup) -> None:
            channel.send_payload(MetricsDelivered(record=extractor.extract(document)).to_payload())

        return script

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _clear_collect_job(self) -> None:
        try:
            self._scheduler.remove_job(COLLECT_JOB_ID)
        except JobLookupError:
            pass

    def _add_collect_job(self, interval_minutes: float) -> None:
        self._scheduler.add_job(
            self.run_cycle,
            trigger="interval",
            minutes=interval_minutes,
            id=COLLECT_JOB_ID,
            name="Dashboard metrics collection",
            replace_existing=True,
            coalesce=True,
            max_instances=3,
        )
        log_event(
            logger,
            logging.INFO,
            "collect_job_installed",
            job_id=COLLECT_JOB_ID,
            interval_minutes=interval_minutes,
        )

    def _schedule_once(
        self,
        func: Callable[[VisitHandle], None],
        handle: VisitHandle,
        *,
        delay_seconds: float,
        job_id: str,
    ) -> None:
        self._scheduler.add_job(
            func,
            trigger="date",
            run_date=self._clock() + timedelta(seconds=delay_seconds),
            args=[handle],
            id=job_id,
            replace_existing=True,
            misfire_grace_time=None,
        )

    def _set_state(self, handle: VisitHandle, state: VisitState) -> None:
        with self._visit_lock:
            self._visit_states[handle.visit_id] = state
        log_event(
            logger,
            logging.DEBUG,
            "visit_state_changed",
            visit_id=handle.visit_id,
            state=state.value,
        )

    def _prune_torn_down(self) -> None:
        with self._visit_lock:
            for visit_id in [
                key for key, state in self._visit_states.items() if state is VisitState.VISIT_TORN_DOWN
            ]:
                del self._visit_states[visit_id]

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        log_event(
            logger,
            logging.ERROR,
            "collection_job_failed",
            job_id=event.job_id,
            error=str(event.exception),
        )
        self._diagnostics.log(
            "Collection step failed: "
            + json.dumps({"job": event.job_id, "error": str(event.exception)}, ensure_ascii=False)
        )
