"""
Field locators: interchangeable strategies for finding one metric's element
in a rendered dashboard document.

Each locator returns the matching ``Tag`` or None. Locators are evaluated in
priority order by the extractor; the first hit wins.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Sequence

from bs4 import BeautifulSoup, NavigableString, Tag

CARD_SELECTOR = ".stat-card, .metric-card"


def label_variants(label: str) -> tuple[str, ...]:
    """
    Return the label as written plus its lower-case form (deduplicated).
    """

    lowered = label.lower()
    if lowered == label:
        return (label,)
    return (label, lowered)


class FieldLocator(ABC):
    """
    One lookup strategy for a metric element.
    """

    name: str = "locator"

    @abstractmethod
    def locate(self, soup: BeautifulSoup) -> Tag | None:
        """
        Return the element holding the metric value, or None.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.describe()})"

    def describe(self) -> str:
        return ""


class _SelectorLocator(FieldLocator):
    def __init__(self, selectors: Sequence[str]) -> None:
        self.selectors = tuple(selector for selector in selectors if selector.strip())

    def locate(self, soup: BeautifulSoup) -> Tag | None:
        for selector in self.selectors:
            found = soup.select_one(selector)
            if found is not None:
                return found
        return None

    def describe(self) -> str:
        return ", ".join(self.selectors)


class PositionalLocator(_SelectorLocator):
    """
    Nth card in the dashboard's card grid.
    """

    name = "positional"

    def __init__(
        self,
        position: int,
        *,
        card_class: str = "stat-card",
        value_class: str = "stat-number",
    ) -> None:
        if position < 1:
            raise ValueError("position is 1-based")
        self.position = position
        super().__init__([f".{card_class}:nth-child({position}) .{value_class}"])


class AttributeLocator(_SelectorLocator):
    """
    Explicit metric-name attribute, e.g. ``data-metric="views"``.
    """

    name = "attribute"

    def __init__(
        self,
        metric: str,
        *,
        attribute: str = "data-metric",
        value_selector: str = ".value",
    ) -> None:
        self.metric = metric
        super().__init__([f'[{attribute}="{metric}"] {value_selector}'])


class ClassNameLocator(_SelectorLocator):
    """
    Metric-specific class name conventions, tried in order.
    """

    name = "class_name"


class TitleTextLocator(FieldLocator):
    """
    Element whose ``title`` attribute contains the localized label.
    """

    name = "title_text"

    def __init__(self, label: str, *, attribute: str = "title") -> None:
        self.label = label
        self.attribute = attribute

    def locate(self, soup: BeautifulSoup) -> Tag | None:
        variants = label_variants(self.label)
        for element in soup.find_all(attrs={self.attribute: True}):
            value = element.get(self.attribute)
            if isinstance(value, list):
                value = " ".join(value)
            if any(variant in value for variant in variants):
                return element
        return None

    def describe(self) -> str:
        return f"{self.attribute}~{self.label!r}"


class FullScanLocator(FieldLocator):
    """
    Text scan of the whole document.

    Every text node containing the label (or its lower-case form) is tried in
    document order: walk up to the nearest enclosing card and return the
    first value element inside it.
    """

    name = "full_scan"

    def __init__(
        self,
        label: str,
        *,
        value_selector: str,
        card_selector: str = CARD_SELECTOR,
    ) -> None:
        self.label = label
        self.value_selector = value_selector
        self.card_selector = card_selector

    def locate(self, soup: BeautifulSoup) -> Tag | None:
        pattern = re.compile("|".join(re.escape(variant) for variant in label_variants(self.label)))
        for text_node in soup.find_all(string=pattern):
            if not isinstance(text_node, NavigableString):
                continue
            start = text_node.parent
            if not isinstance(start, Tag):
                continue
            card = start.css.closest(self.card_selector)
            if card is None:
                continue
            value = card.select_one(self.value_selector)
            if value is not None:
                return value
        return None

    def describe(self) -> str:
        return f"{self.label!r} -> {self.value_selector}"
