"""
Isolated page visits.

``VisitHost`` is the host-runtime seam the orchestrator drives: open an
isolated, inactive page for a URL, inject a one-shot script into it, and
destroy it by handle. ``PlaywrightVisitHost`` implements it with a headless
Chromium browser; each visit gets its own browser context.
"""

from __future__ import annotations

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from bs4 import BeautifulSoup
from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from kwork_monitor.domain.metrics import utc_now
from kwork_monitor.errors import VisitNotFoundError
from kwork_monitor.logging_utils import log_event

logger = logging.getLogger(__name__)

InjectedScript = Callable[[BeautifulSoup], None]


@dataclass(frozen=True)
class VisitHandle:
    """
    Opaque reference to one open visit.
    """

    visit_id: str
    url: str
    opened_at: datetime = field(default_factory=utc_now)


def new_visit_handle(url: str) -> VisitHandle:
    return VisitHandle(visit_id=uuid.uuid4().hex, url=url)


class VisitHost(ABC):
    """
    Host primitives for isolated page visits.
    """

    @abstractmethod
    def open_visit(self, url: str) -> VisitHandle:
        """
        Open an isolated, inactive page for ``url`` and return its handle.
        """

    @abstractmethod
    def inject(self, handle: VisitHandle, script: InjectedScript) -> None:
        """
        Run ``script`` once against the visit's rendered document.

        Fire and forget: the call does not wait for the script to finish and
        reports no result.
        """

    @abstractmethod
    def close_visit(self, handle: VisitHandle) -> None:
        """
        Destroy the visit. Raises VisitNotFoundError for unknown handles.
        """

    def shutdown(self) -> None:
        """
        Release every resource held by the host.
        """


class PlaywrightVisitHost(VisitHost):
    """
    Headless Chromium visits.

    Playwright's sync API is bound to the thread that started it, so every
    browser call is funnelled through a single-worker executor. Injection only
    holds that worker for the ``page.content()`` read: the settle wait runs on
    a timer and the script runs on the timer thread, so a due teardown is never
    queued behind extraction and can close the visit first.
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        navigation_timeout_seconds: float = 30.0,
        render_settle_seconds: float = 2.0,
        user_agent: str | None = None,
        storage_state_path: str | None = None,
    ) -> None:
        self._headless = headless
        self._navigation_timeout_ms = navigation_timeout_seconds * 1000
        self._render_settle_seconds = render_settle_seconds
        self._user_agent = user_agent
        self._storage_state_path = storage_state_path

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="kwork-monitor-browser")
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._visits: dict[str, tuple[BrowserContext, Page]] = {}
        self._timers_lock = threading.Lock()
        self._timers: set[threading.Timer] = set()

    def open_visit(self, url: str) -> VisitHandle:
        return self._executor.submit(self._open, url).result()

    def inject(self, handle: VisitHandle, script: InjectedScript) -> None:
        timer = threading.Timer(
            self._render_settle_seconds,
            self._run_injection,
            args=(handle, script),
        )
        timer.daemon = True
        with self._timers_lock:
            self._timers.add(timer)
        timer.start()

    def close_visit(self, handle: VisitHandle) -> None:
        self._executor.submit(self._close, handle).result()

    def shutdown(self) -> None:
        with self._timers_lock:
            pending = list(self._timers)
            self._timers.clear()
        for timer in pending:
            timer.cancel()
        try:
            self._executor.submit(self._stop).result()
        finally:
            self._executor.shutdown(wait=True)

    def _run_injection(self, handle: VisitHandle, script: InjectedScript) -> None:
        # Runs on the timer's own thread.
        with self._timers_lock:
            self._timers.discard(threading.current_thread())
        try:
            html = self._executor.submit(self._read_content, handle).result()
            script(BeautifulSoup(html, "html.parser"))
        except Exception as exc:  # noqa: BLE001
            log_event(
                logger,
                logging.WARNING,
                "visit_injection_failed",
                visit_id=handle.visit_id,
                url=handle.url,
                error=str(exc),
            )

    # Everything below runs on the browser worker thread.

    def _ensure_browser(self) -> Browser:
        if self._browser is None:
            self._playwright = sync_playwright().start()
            self._browser = self._playwright.chromium.launch(headless=self._headless)
            log_event(logger, logging.INFO, "browser_started", headless=self._headless)
        return self._browser

    def _open(self, url: str) -> VisitHandle:
        browser = self._ensure_browser()
        context_kwargs: dict[str, Any] = {}
        if self._user_agent:
            context_kwargs["user_agent"] = self._user_agent
        if self._storage_state_path:
            context_kwargs["storage_state"] = self._storage_state_path

        context = browser.new_context(**context_kwargs)
        try:
            page = context.new_page()
            page.set_default_navigation_timeout(self._navigation_timeout_ms)
            # Only wait for the navigation to commit; rendering time is
            # covered by the orchestrator's load delay.
            page.goto(url, wait_until="commit")
        except Exception:
            context.close()
            raise

        handle = new_visit_handle(url)
        self._visits[handle.visit_id] = (context, page)
        log_event(logger, logging.INFO, "visit_opened", visit_id=handle.visit_id, url=url)
        return handle

    def _read_content(self, handle: VisitHandle) -> str:
        _, page = self._lookup(handle)
        return page.content()

    def _close(self, handle: VisitHandle) -> None:
        context, _ = self._lookup(handle)
        del self._visits[handle.visit_id]
        context.close()
        log_event(logger, logging.INFO, "visit_closed", visit_id=handle.visit_id)

    def _lookup(self, handle: VisitHandle) -> tuple[BrowserContext, Page]:
        try:
            return self._visits[handle.visit_id]
        except KeyError:
            raise VisitNotFoundError(f"Visit {handle.visit_id} is not open.") from None

    def _stop(self) -> None:
        for context, _ in list(self._visits.values()):
            context.close()
        self._visits.clear()
        if self._browser is not None:
            self._browser.close()
            self._browser = None
        if self._playwright is not None:
            self._playwright.stop()
            self._playwright = None

