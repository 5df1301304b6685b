"""
Dashboard scraping: locator cascade, extractor, visits and message channel.
"""

from kwork_monitor.scraping.channel import MessageChannel
from kwork_monitor.scraping.extractor import MetricsExtractor, parse_count
from kwork_monitor.scraping.fields import DASHBOARD_FIELDS, MetricField
from kwork_monitor.scraping.visits import PlaywrightVisitHost, VisitHandle, VisitHost

__all__ = [
    "DASHBOARD_FIELDS",
    "MessageChannel",
    "MetricField",
    "MetricsExtractor",
    "PlaywrightVisitHost",
    "VisitHandle",
    "VisitHost",
    "parse_count",
]
