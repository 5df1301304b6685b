"""
kwork_monitor/domain/metrics.py

Domain models for collected dashboard metrics, collection config and
diagnostic log entries.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

COMPETITION_DEFAULT = "N/A"
DEFAULT_INTERVAL_MINUTES = 1.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: object) -> datetime | None:
    """
    Parse an ISO-8601 string into an aware UTC datetime.

    Accepts the trailing ``Z`` form as well. Returns None for anything
    that cannot be parsed.
    """

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _non_negative_int(value: object) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float) and math.isfinite(value):
        return max(0, int(value))
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return 0


@dataclass(frozen=True)
class MetricRecord:
    """
    One observation of the dashboard.

    Every field always carries a value; extraction failures are represented
    by the defaults (0 for counters, ``"N/A"`` for competition).
    """

    date: datetime = field(default_factory=utc_now)
    views: int = 0
    sales: int = 0
    earned: int = 0
    competition: str = COMPETITION_DEFAULT

    def to_payload(self) -> dict[str, Any]:
        return {
            "date": format_timestamp(self.date),
            "views": self.views,
            "sales": self.sales,
            "earned": self.earned,
            "competition": self.competition,
        }

    @classmethod
    def from_payload(cls, payload: object) -> "MetricRecord":
        """
        Build a record from its JSON form, substituting defaults for
        missing or malformed fields.
        """

        if not isinstance(payload, dict):
            return cls()
        competition = payload.get("competition")
        if not isinstance(competition, str) or not competition.strip():
            competition = COMPETITION_DEFAULT
        return cls(
            date=parse_timestamp(payload.get("date")) or utc_now(),
            views=_non_negative_int(payload.get("views")),
            sales=_non_negative_int(payload.get("sales")),
            earned=_non_negative_int(payload.get("earned")),
            competition=competition.strip(),
        )


def normalize_interval(value: object, default: float = DEFAULT_INTERVAL_MINUTES) -> float:
    """
    Coerce a configured interval to a positive number of minutes.

    Missing, non-numeric, non-finite or non-positive values fall back to
    ``default``.
    """

    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, (int, float)):
        return default
    interval = float(value)
    if not math.isfinite(interval) or interval <= 0:
        return default
    return interval


@dataclass(frozen=True)
class CollectionConfig:
    """
    Collection schedule settings persisted across restarts.
    """

    interval_minutes: float = DEFAULT_INTERVAL_MINUTES

    @classmethod
    def from_raw(cls, value: object) -> "CollectionConfig":
        return cls(interval_minutes=normalize_interval(value))


@dataclass(frozen=True)
class LogEntry:
    """
    One diagnostic log line.
    """

    time: datetime
    message: str

    def to_payload(self) -> dict[str, str]:
        return {"time": format_timestamp(self.time), "message": self.message}

    @classmethod
    def from_payload(cls, payload: object) -> "LogEntry | None":
        if not isinstance(payload, dict):
            return None
        time = parse_timestamp(payload.get("time"))
        message = payload.get("message")
        if time is None or not isinstance(message, str):
            return None
        return cls(time=time, message=message)

    def render(self) -> str:
        return f"[{format_timestamp(self.time)}] {self.message}"
