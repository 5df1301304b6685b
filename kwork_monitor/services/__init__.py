"""
Service layer exports.
"""

from kwork_monitor.services.accumulator import MetricsAccumulator

__all__ = ["MetricsAccumulator"]
