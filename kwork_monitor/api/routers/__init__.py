"""
kwork_monitor/api/routers package marker.
"""

from kwork_monitor.api.routers.metrics import router as metrics_router

__all__ = ["metrics_router"]
