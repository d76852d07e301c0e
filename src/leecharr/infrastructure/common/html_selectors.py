"""BeautifulSoup helpers shared by site adapters, hops and terminal parsing.

``extract_attr`` accepts a primary selector and optional
*fallback_selectors*; the first selector that yields a value wins.
Aggregator markup drifts often, so callers list the older layout as a
fallback instead of failing outright.
"""

from __future__ import annotations

from typing import Iterator
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString, Tag


def parse_html(html: str) -> BeautifulSoup:
    """Parse an HTML string into a BeautifulSoup tree (lxml parser)."""
    return BeautifulSoup(html, "lxml")


def extract_attr(
    element: BeautifulSoup | Tag,
    selector: str,
    attr: str,
    *fallback_selectors: str,
    default: str = "",
) -> str:
    """Extract an HTML attribute from the first matching child element.

    With ``selector=""`` the attribute is read from *element* itself.
    """
    if selector == "":
        val = element.get(attr)
        return str(val) if val else default

    for sel in (selector, *fallback_selectors):
        match = element.select_one(sel)
        if match:
            val = match.get(attr)
            if val:
                return str(val)
    return default


def text_of(element: Tag | None) -> str:
    """Whitespace-collapsed text of *element* ("" for None)."""
    if element is None:
        return ""
    return " ".join(element.get_text(" ", strip=True).split())


def own_text(element: Tag) -> str:
    """Text of *element*'s direct string children, skipping nested tags."""
    parts = [
        str(child).strip()
        for child in element.children
        if isinstance(child, NavigableString)
    ]
    return " ".join(p for p in parts if p)


def href_of(anchor: Tag, base_url: str = "") -> str:
    href = anchor.get("href")
    if not href:
        return ""
    return urljoin(base_url, str(href)) if base_url else str(href)


def previous_tags(element: Tag) -> Iterator[Tag]:
    """Previous element siblings, nearest first."""
    for sibling in element.previous_siblings:
        if isinstance(sibling, Tag):
            yield sibling


def next_tags_until(element: Tag, stop: set[str]) -> Iterator[Tag]:
    """Following element siblings up to (excluding) the first *stop* tag."""
    for sibling in element.next_siblings:
        if not isinstance(sibling, Tag):
            continue
        if sibling.name in stop:
            return
        yield sibling


def closest(element: Tag, *names: str) -> Tag | None:
    """Nearest ancestor-or-self whose tag name is in *names*."""
    if element.name in names:
        return element
    return element.find_parent(list(names))
