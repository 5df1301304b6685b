"""
tests/test_extractor.py

Pytest unit tests for MetricsExtractor and count parsing.

All tests are pure Python: fixture HTML only, no browser.

Coverage
--------
- One page fixture per cascade level (positional, attribute, class name,
  title text, full-text scan)
- Pages missing every marker fall back to defaults without raising
- Numeric parsing under formatting noise
- Competition label trimming
- Diagnostic summary written before the record is emitted
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

from kwork_monitor.diagnostics import DiagnosticLog
from kwork_monitor.domain.metrics import MetricRecord
from kwork_monitor.scraping.extractor import MetricsExtractor, clean_label, parse_count
from kwork_monitor.scraping.fields import DASHBOARD_FIELDS, MetricField
from kwork_monitor.scraping.locators import ClassNameLocator, FieldLocator

FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)
PAGES_DIR = Path(__file__).parent / "fixtures" / "pages"


def _soup(name: str) -> BeautifulSoup:
    return BeautifulSoup((PAGES_DIR / f"{name}.html").read_text(encoding="utf-8"), "html.parser")


@pytest.fixture()
def extractor() -> MetricsExtractor:
    return MetricsExtractor(clock=lambda: FIXED_NOW)


# ---------------------------------------------------------------------------
# Count parsing
# ---------------------------------------------------------------------------


class TestParseCount:
    @pytest.mark.parametrize("text", ["1 234", "1,234 views", "1234", " 1 234 "])
    def test_formatting_noise_is_stripped(self, text: str) -> None:
        assert parse_count(text) == 1234

    @pytest.mark.parametrize("text", ["", "   ", "нет данных", "—", None])
    def test_no_digits_yields_zero(self, text: str | None) -> None:
        assert parse_count(text) == 0

    def test_currency_and_separators(self) -> None:
        assert parse_count("93 000 ₽") == 93000

    @pytest.mark.parametrize("text", ["１２３", "٤٥", "１２３ views"])
    def test_only_ascii_digits_count(self, text: str) -> None:
        assert parse_count(text) == 0

    def test_clean_label_trims_and_defaults(self) -> None:
        assert clean_label("  Высокая \n") == "Высокая"
        assert clean_label("   ") == "N/A"


# ---------------------------------------------------------------------------
# Cascade levels
# ---------------------------------------------------------------------------


class TestCascadeLevels:
    def test_positional_layout(self, extractor: MetricsExtractor) -> None:
        record = extractor.extract(_soup("positional"))

        assert (record.views, record.sales, record.earned) == (1500, 42, 93000)
        assert record.competition == "Высокая"

    def test_attribute_layout(self, extractor: MetricsExtractor) -> None:
        record = extractor.extract(_soup("attribute"))

        assert (record.views, record.sales, record.earned) == (1234, 17, 48250)
        assert record.competition == "Средняя"

    def test_class_name_layout(self, extractor: MetricsExtractor) -> None:
        record = extractor.extract(_soup("class_name"))

        assert (record.views, record.sales, record.earned) == (321, 7, 12000)
        assert record.competition == "Низкая"

    def test_title_layout(self, extractor: MetricsExtractor) -> None:
        record = extractor.extract(_soup("title"))

        assert (record.views, record.sales, record.earned) == (77, 3, 4500)
        assert record.competition == "Высокая"

    def test_full_scan_layout(self, extractor: MetricsExtractor) -> None:
        record = extractor.extract(_soup("full_scan"))

        assert (record.views, record.sales, record.earned) == (2048, 12, 56700)
        assert record.competition == "Средняя"

    @pytest.mark.parametrize(
        "page, expected_locator",
        [
            ("positional", "positional"),
            ("attribute", "attribute"),
            ("class_name", "class_name"),
            ("title", "title_text"),
            ("full_scan", "full_scan"),
        ],
    )
    def test_each_layout_resolves_at_its_level(
        self,
        extractor: MetricsExtractor,
        page: str,
        expected_locator: str,
    ) -> None:
        soup = _soup(page)
        for metric_field in DASHBOARD_FIELDS:
            match = extractor.locate(soup, metric_field)
            assert match is not None, metric_field.name
            assert match[0] == expected_locator

    def test_earlier_level_wins_when_several_match(self, extractor: MetricsExtractor) -> None:
        html = """
        <div class="stats">
          <div class="stat-card"><span class="stat-number">10</span></div>
        </div>
        <span class="views-count">999</span>
        """
        record = extractor.extract_html(html)
        assert record.views == 10


# ---------------------------------------------------------------------------
# Degradation
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_page_without_markers_yields_defaults(self, extractor: MetricsExtractor) -> None:
        record = extractor.extract(_soup("login"))

        assert record.views == 0
        assert record.sales == 0
        assert record.earned == 0
        assert record.competition == "N/A"
        assert record.date == FIXED_NOW

    @pytest.mark.parametrize(
        "html",
        [
            "",
            "<<<>>>",
            "<div class='stat-card'><span class='stat-number'>",
            "<div class='metric-card'>Просмотры</div>",
        ],
    )
    def test_malformed_markup_never_raises(self, extractor: MetricsExtractor, html: str) -> None:
        record = extractor.extract_html(html)
        assert isinstance(record, MetricRecord)
        assert record.views == 0
        assert record.competition == "N/A"

    def test_empty_value_element_keeps_zero(self, extractor: MetricsExtractor) -> None:
        html = "<div class='stat-card'><span class='stat-number'>—</span></div>"
        assert extractor.extract_html(html).views == 0

    @pytest.mark.parametrize(
        "html, expected",
        [
            (
                "<div><div class='stat-card'></div><div class='stat-card'></div><div class='stat-card'></div>"
                "<div class='stat-card'><span class='stat-number'>Высокая<sup>*</sup></span></div></div>",
                "Высокая*",
            ),
            (
                "<span class='competition-level'>  Высокая\n   конкуренция \n</span>",
                "Высокая\n   конкуренция",
            ),
        ],
    )
    def test_competition_text_kept_verbatim(
        self,
        extractor: MetricsExtractor,
        html: str,
        expected: str,
    ) -> None:
        assert extractor.extract_html(html).competition == expected

    def test_unusable_match_keeps_default(self) -> None:
        class _NotAnElement(FieldLocator):
            name = "not_an_element"

            def locate(self, soup: BeautifulSoup):
                return object()

        field = MetricField(name="sales", label="Продажи", numeric=True, locators=(_NotAnElement(),))
        extractor = MetricsExtractor(fields=[field], clock=lambda: FIXED_NOW)

        record = extractor.extract_html("<p>12</p>")

        assert record.sales == 0

    def test_failing_summary_still_returns_record(self, storage) -> None:
        class _BrokenLog(DiagnosticLog):
            def log(self, message: str):
                raise RuntimeError("log store gone")

        extractor = MetricsExtractor(
            diagnostics=_BrokenLog(storage=storage),
            clock=lambda: FIXED_NOW,
        )

        record = extractor.extract(_soup("positional"))

        assert record.views == 1500

    def test_failing_locator_falls_through_to_next(self) -> None:
        class _Broken(FieldLocator):
            name = "broken"

            def locate(self, soup: BeautifulSoup):
                raise RuntimeError("selector engine exploded")

        field = MetricField(
            name="views",
            label="Просмотры",
            numeric=True,
            locators=(_Broken(), ClassNameLocator([".views-count"])),
        )
        extractor = MetricsExtractor(fields=[field], clock=lambda: FIXED_NOW)

        record = extractor.extract_html("<span class='views-count'>55</span>")

        assert record.views == 55
        assert record.sales == 0


# ---------------------------------------------------------------------------
# Output contract
# ---------------------------------------------------------------------------


class TestRecordOutput:
    def test_end_to_end_stat_cards(self, extractor: MetricsExtractor) -> None:
        payload = extractor.extract(_soup("positional")).to_payload()

        assert {key: payload[key] for key in ("views", "sales", "earned", "competition")} == {
            "views": 1500,
            "sales": 42,
            "earned": 93000,
            "competition": "Высокая",
        }
        assert datetime.fromisoformat(payload["date"]) == FIXED_NOW

    def test_record_is_immutable(self, extractor: MetricsExtractor) -> None:
        record = extractor.extract(_soup("positional"))
        with pytest.raises((AttributeError, TypeError)):
            record.views = 1  # type: ignore[misc]

    def test_summary_logged_to_diagnostics(self, storage) -> None:
        diagnostics = DiagnosticLog(storage=storage, clock=lambda: FIXED_NOW)
        extractor = MetricsExtractor(diagnostics=diagnostics, clock=lambda: FIXED_NOW)

        extractor.extract(_soup("positional"))

        messages = [entry.message for entry in storage.get_logs()]
        assert len(messages) == 1
        assert messages[0].startswith("Extracted metrics: ")
        assert '"views": 1500' in messages[0]
        assert "Высокая" in messages[0]
