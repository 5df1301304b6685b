"""
Metric field definitions for the kwork seller dashboard.

Each field pairs a localized label with the ordered locator cascade used to
find its value.
"""

from __future__ import annotations

from dataclasses import dataclass

from kwork_monitor.domain.metrics import COMPETITION_DEFAULT
from kwork_monitor.scraping.locators import (
    AttributeLocator,
    ClassNameLocator,
    FieldLocator,
    FullScanLocator,
    PositionalLocator,
    TitleTextLocator,
)

NUMBER_VALUE_SELECTOR = ".stat-number, .number, .value"
LEVEL_VALUE_SELECTOR = ".stat-number, .level, .value"


@dataclass(frozen=True)
class MetricField:
    """
    One extractable metric.
    """

    name: str
    label: str
    numeric: bool
    locators: tuple[FieldLocator, ...]

    @property
    def default(self) -> int | str:
        return 0 if self.numeric else COMPETITION_DEFAULT


def build_field(
    *,
    name: str,
    label: str,
    position: int,
    class_selectors: tuple[str, ...],
    numeric: bool = True,
) -> MetricField:
    """
    Assemble the standard five-level cascade for a dashboard metric.
    """

    value_selector = NUMBER_VALUE_SELECTOR if numeric else LEVEL_VALUE_SELECTOR
    return MetricField(
        name=name,
        label=label,
        numeric=numeric,
        locators=(
            PositionalLocator(position),
            AttributeLocator(name),
            ClassNameLocator(class_selectors),
            TitleTextLocator(label),
            FullScanLocator(label, value_selector=value_selector),
        ),
    )


DASHBOARD_FIELDS: tuple[MetricField, ...] = (
    build_field(
        name="views",
        label="Просмотры",
        position=1,
        class_selectors=(".views-count", ".metric-views .number"),
    ),
    build_field(
        name="sales",
        label="Продажи",
        position=2,
        class_selectors=(".sales-count", ".metric-sales .number"),
    ),
    build_field(
        name="earned",
        label="Заработано",
        position=3,
        class_selectors=(".earned-amount", ".metric-earned .number"),
    ),
    build_field(
        name="competition",
        label="Конкуренция",
        position=4,
        class_selectors=(".competition-level", ".metric-competition .level"),
        numeric=False,
    ),
)
