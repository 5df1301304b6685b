"""
kwork_monitor/scheduler/jobs.py

Wiring for the collection scheduler.

Call ``build_orchestrator()`` once to get a configured, *not yet started*
``CollectionOrchestrator``. Start it on process boot and shut it down
gracefully on exit; the API wires this into FastAPI's ``lifespan``.
"""

from __future__ import annotations

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler

from db.session import build_session_factory, create_db_engine, get_session_factory
from kwork_monitor.config import MonitorSettings, get_monitor_settings
from kwork_monitor.scheduler.orchestrator import CollectionOrchestrator
from kwork_monitor.scraping.channel import MessageChannel
from kwork_monitor.scraping.visits import PlaywrightVisitHost, VisitHost
from kwork_monitor.storage import MetricsStorage, SQLAlchemyMetricsStorage


def build_scheduler() -> BackgroundScheduler:
    """
    Scheduler for the recurring trigger and the per-visit one-shot jobs.
    """

    return BackgroundScheduler(
        timezone="UTC",
        executors={"default": ThreadPoolExecutor(max_workers=4)},
    )


def build_storage(database_url: str | None = None) -> MetricsStorage:
    if database_url:
        session_factory = build_session_factory(create_db_engine(database_url))
    else:
        session_factory = get_session_factory()
    return SQLAlchemyMetricsStorage(session_factory=session_factory)


def build_visit_host(settings: MonitorSettings) -> VisitHost:
    return PlaywrightVisitHost(
        headless=settings.headless,
        navigation_timeout_seconds=settings.navigation_timeout_seconds,
        render_settle_seconds=settings.render_settle_seconds,
        user_agent=settings.user_agent,
        storage_state_path=settings.storage_state_path,
    )


def build_orchestrator(
    *,
    settings: MonitorSettings | None = None,
    storage: MetricsStorage | None = None,
    visit_host: VisitHost | None = None,
) -> CollectionOrchestrator:
    resolved = settings or get_monitor_settings()
    return CollectionOrchestrator(
        settings=resolved,
        storage=storage or build_storage(),
        visit_host=visit_host or build_visit_host(resolved),
        channel=MessageChannel(),
        scheduler=build_scheduler(),
    )
