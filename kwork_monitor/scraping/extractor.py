"""
Dashboard metrics extractor.

Runs once per visit against the rendered document and always returns a
complete ``MetricRecord``: a field whose cascade finds nothing keeps its
default, and no markup problem is allowed to abort the record.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Sequence
from datetime import datetime

from bs4 import BeautifulSoup, Tag

from kwork_monitor.diagnostics import DiagnosticLog
from kwork_monitor.domain.metrics import COMPETITION_DEFAULT, MetricRecord, utc_now
from kwork_monitor.logging_utils import log_event
from kwork_monitor.scraping.fields import DASHBOARD_FIELDS, MetricField

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"[^0-9]")


def parse_count(text: str | None) -> int:
    """
    Strip every non-digit character and convert to int; empty gives 0.

    >>> parse_count("1 234")
    1234
    >>> parse_count("1,234 views")
    1234
    >>> parse_count("")
    0
    """

    digits = _NON_DIGITS.sub("", text or "")
    return int(digits) if digits else 0


def clean_label(text: str | None) -> str:
    stripped = (text or "").strip()
    return stripped or COMPETITION_DEFAULT


def element_text(element: Tag) -> str:
    return element.get_text()


class MetricsExtractor:
    """
    Apply each field's locator cascade to a document and assemble a record.
    """

    def __init__(
        self,
        *,
        fields: Sequence[MetricField] = DASHBOARD_FIELDS,
        diagnostics: DiagnosticLog | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._fields = tuple(fields)
        self._diagnostics = diagnostics
        self._clock = clock

    def extract_html(self, html: str) -> MetricRecord:
        try:
            soup = BeautifulSoup(html or "", "html.parser")
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "document_parse_failed", error=str(exc))
            soup = BeautifulSoup("", "html.parser")
        return self.extract(soup)

    def extract(self, soup: BeautifulSoup) -> MetricRecord:
        values: dict[str, int | str] = {}
        for metric_field in self._fields:
            try:
                values[metric_field.name] = self._extract_field(soup, metric_field)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.WARNING,
                    "field_extraction_failed",
                    field=metric_field.name,
                    error=str(exc),
                )
                values[metric_field.name] = metric_field.default

        record = MetricRecord(
            date=self._clock(),
            views=int(values.get("views", 0)),
            sales=int(values.get("sales", 0)),
            earned=int(values.get("earned", 0)),
            competition=str(values.get("competition", COMPETITION_DEFAULT)),
        )
        self._record_summary(record)
        return record

    def locate(self, soup: BeautifulSoup, metric_field: MetricField) -> tuple[str, Tag] | None:
        """
        Run the cascade for one field; return (locator name, element) on the
        first hit.
        """

        for locator in metric_field.locators:
            try:
                element = locator.locate(soup)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    logger,
                    logging.DEBUG,
                    "locator_failed",
                    field=metric_field.name,
                    locator=locator.name,
                    error=str(exc),
                )
                continue
            if element is not None:
                return locator.name, element
        return None

    def _extract_field(self, soup: BeautifulSoup, metric_field: MetricField) -> int | str:
        match = self.locate(soup, metric_field)
        if match is None:
            log_event(logger, logging.DEBUG, "field_not_found", field=metric_field.name)
            return metric_field.default

        locator_name, element = match
        text = element_text(element)
        log_event(
            logger,
            logging.DEBUG,
            "field_located",
            field=metric_field.name,
            locator=locator_name,
            text=text,
        )
        if metric_field.numeric:
            return parse_count(text)
        return clean_label(text)

    def _record_summary(self, record: MetricRecord) -> None:
        summary = {
            "views": record.views,
            "sales": record.sales,
            "earned": record.earned,
            "competition": record.competition,
        }
        message = "Extracted metrics: " + json.dumps(summary, ensure_ascii=False)
        if self._diagnostics is None:
            logger.info(message)
            return
        try:
            self._diagnostics.log(message)
        except Exception as exc:  # noqa: BLE001
            log_event(logger, logging.WARNING, "extraction_summary_failed", error=str(exc))
