"""
kwork_monitor/config.py

Environment-driven runtime settings for the dashboard monitor.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files

DEFAULT_DASHBOARD_URL = "https://kwork.ru/manage_kworks"


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class MonitorSettings:
    """
    Runtime settings for scheduled dashboard collection.

    The delays drive the visit state machine: the extractor is injected
    ``page_load_delay_seconds`` after the visit opens, and the visit is torn
    down ``teardown_grace_seconds`` after injection whether or not a record
    arrived.
    """

    dashboard_url: str = DEFAULT_DASHBOARD_URL
    page_load_delay_seconds: float = 3.0
    teardown_grace_seconds: float = 5.0
    render_settle_seconds: float = 2.0
    navigation_timeout_seconds: float = 30.0
    headless: bool = True
    user_agent: str | None = None
    storage_state_path: str | None = None


@lru_cache(maxsize=1)
def get_monitor_settings() -> MonitorSettings:
    """
    Return cached monitor settings from environment variables.
    """

    return MonitorSettings(
        dashboard_url=_get_str_env("MONITOR_DASHBOARD_URL", DEFAULT_DASHBOARD_URL),
        page_load_delay_seconds=max(0.0, _get_float_env("MONITOR_PAGE_LOAD_DELAY_SECONDS", 3.0)),
        teardown_grace_seconds=max(0.0, _get_float_env("MONITOR_TEARDOWN_GRACE_SECONDS", 5.0)),
        render_settle_seconds=max(0.0, _get_float_env("MONITOR_RENDER_SETTLE_SECONDS", 2.0)),
        navigation_timeout_seconds=max(
            1.0,
            _get_float_env("MONITOR_NAVIGATION_TIMEOUT_SECONDS", 30.0),
        ),
        headless=_get_bool_env("MONITOR_HEADLESS", True),
        user_agent=_get_optional_str_env("MONITOR_USER_AGENT"),
        storage_state_path=_get_optional_str_env("MONITOR_STORAGE_STATE_PATH"),
    )
