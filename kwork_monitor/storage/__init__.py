"""
Storage layer exports.
"""

from kwork_monitor.storage.base import MetricsStorage
from kwork_monitor.storage.sqlalchemy_storage import SQLAlchemyMetricsStorage

__all__ = ["MetricsStorage", "SQLAlchemyMetricsStorage"]
