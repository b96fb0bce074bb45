"""
BeautifulSoup helpers shared by the page parsers.

Parsers only rely on ``select``/``select_one``, attribute access and
``get_text``, so any tree built from an HTML snippet works in tests.
"""

import re
from copy import copy
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from bs4 import BeautifulSoup, Tag

HTML_PARSER = "html.parser"

# Card links look like /yugiohdb/card_search.action?ope=2&cid=5533
CARD_LINK_PATTERN = re.compile(r"[?&]cid=(\d+)")

_INTEGER = re.compile(r"\d+")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ListingPage(Generic[T]):
    """
    Items parsed from one listing page.

    Attributes:
        items: Parsed records in page order
        rows: Number of `.t_row` elements on the page, parseable or not
    """

    items: list[T] = field(default_factory=list)
    rows: int = 0

    @property
    def skipped(self) -> int:
        return self.rows - len(self.items)


def make_soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, HTML_PARSER)


def attr_text(tag: Tag | None, name: str) -> str:
    """Attribute value as a string ("" when missing; multi-valued joined by spaces)."""
    if tag is None:
        return ""
    value = tag.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def has_class(tag: Tag, class_name: str) -> bool:
    classes = tag.get("class") or []
    return class_name in classes


def first_int(text: str | None) -> int | None:
    """First run of digits in text, or None."""
    if not text:
        return None
    match = _INTEGER.search(text)
    return int(match.group(0)) if match else None


def text_with_breaks(element: Tag, *, drop_rules: bool = False) -> str:
    """
    Element text with <br> turned into newlines, stripped.

    Args:
        element: Element to read (left untouched)
        drop_rules: Also remove <hr> separators

    Returns:
        Text content, "" when the element is empty
    """
    clone = copy(element)
    if drop_rules:
        for rule in clone.select("hr"):
            rule.decompose()
    for br in clone.select("br"):
        br.replace_with("\n")
    return clone.get_text().strip()


def text_with_card_links(element: Tag) -> str:
    """
    Element text with line breaks kept and card links templated.

    ``<a href="...?cid=5533">Dark Magician</a>`` becomes ``{{Dark Magician|5533}}``.
    Links without a card id keep their plain text.
    """
    clone = copy(element)
    for br in clone.select("br"):
        br.replace_with("\n")

    for link in clone.select('a[href*="cid="]'):
        match = CARD_LINK_PATTERN.search(attr_text(link, "href"))
        if match:
            link_name = link.get_text().strip()
            link.replace_with(f"{{{{{link_name}|{match.group(1)}}}}}")

    return clone.get_text().strip()
