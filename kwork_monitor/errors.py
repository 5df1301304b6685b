"""
Exceptions raised by the collection pipeline.
"""

from __future__ import annotations


class MonitorError(Exception):
    """Base exception for dashboard monitor failures."""


class VisitNotFoundError(MonitorError):
    """Raised when a visit handle does not refer to an open visit."""


class UnknownMessageError(MonitorError):
    """Raised when a channel payload cannot be mapped to a known message."""
