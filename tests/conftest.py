"""
Shared pytest fixtures.

Everything runs in-process: SQLite in memory for state, a fake visit host
serving fixture HTML instead of a browser, and an APScheduler scheduler that
is never started so pending jobs can be inspected and run by hand.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from apscheduler.schedulers.background import BackgroundScheduler
from bs4 import BeautifulSoup
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db.base import Base
from db.models import MonitorStateEntry  # noqa: F401
from kwork_monitor.config import MonitorSettings
from kwork_monitor.errors import VisitNotFoundError
from kwork_monitor.scheduler.orchestrator import CollectionOrchestrator
from kwork_monitor.scraping.channel import MessageChannel
from kwork_monitor.scraping.visits import InjectedScript, VisitHandle, VisitHost, new_visit_handle
from kwork_monitor.storage import SQLAlchemyMetricsStorage

PAGES_DIR = Path(__file__).parent / "fixtures" / "pages"


def read_page(name: str) -> str:
    return (PAGES_DIR / f"{name}.html").read_text(encoding="utf-8")


class FakeVisitHost(VisitHost):
    """
    Visit host that renders a fixed HTML document and records every call.
    """

    def __init__(self, html: str = "") -> None:
        self.html = html
        self.open_ids: set[str] = set()
        self.opened: list[VisitHandle] = []
        self.injected: list[VisitHandle] = []
        self.closed: list[VisitHandle] = []
        self.shut_down = False

    def open_visit(self, url: str) -> VisitHandle:
        handle = new_visit_handle(url)
        self.open_ids.add(handle.visit_id)
        self.opened.append(handle)
        return handle

    def inject(self, handle: VisitHandle, script: InjectedScript) -> None:
        if handle.visit_id not in self.open_ids:
            raise VisitNotFoundError(handle.visit_id)
        self.injected.append(handle)
        script(BeautifulSoup(self.html, "html.parser"))

    def close_visit(self, handle: VisitHandle) -> None:
        if handle.visit_id not in self.open_ids:
            raise VisitNotFoundError(handle.visit_id)
        self.open_ids.remove(handle.visit_id)
        self.closed.append(handle)

    def shutdown(self) -> None:
        self.shut_down = True


@pytest.fixture()
def session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield sessionmaker(bind=engine, expire_on_commit=False)
    finally:
        engine.dispose()


@pytest.fixture()
def storage(session_factory: sessionmaker) -> SQLAlchemyMetricsStorage:
    return SQLAlchemyMetricsStorage(session_factory=session_factory)


@pytest.fixture()
def settings() -> MonitorSettings:
    return MonitorSettings(
        dashboard_url="https://kwork.ru/manage_kworks",
        page_load_delay_seconds=3.0,
        teardown_grace_seconds=5.0,
    )


@pytest.fixture()
def visit_host() -> FakeVisitHost:
    return FakeVisitHost(read_page("positional"))


@pytest.fixture()
def scheduler() -> BackgroundScheduler:
    return BackgroundScheduler(timezone="UTC")


@pytest.fixture()
def orchestrator(
    settings: MonitorSettings,
    storage: SQLAlchemyMetricsStorage,
    visit_host: FakeVisitHost,
    scheduler: BackgroundScheduler,
) -> CollectionOrchestrator:
    return CollectionOrchestrator(
        settings=settings,
        storage=storage,
        visit_host=visit_host,
        channel=MessageChannel(),
        scheduler=scheduler,
    )
