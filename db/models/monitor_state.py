"""
db/models/monitor_state.py

Key-value rows holding the monitor's persisted state.

Each row stores one JSON document under a well-known key:
``collectInterval``, ``metrics``, ``lastUpdated`` and ``logs``.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class MonitorStateEntry(Base, TimestampMixin):
    __tablename__ = "monitor_state"

    key: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
        comment="Persisted state key, e.g. 'metrics' or 'logs'",
    )
    value: Mapped[Any] = mapped_column(
        JSON,
        nullable=True,
        comment="JSON-serializable value stored under the key",
    )
