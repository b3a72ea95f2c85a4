"""Product name extraction — ordered selector cascade, first usable match wins."""

from __future__ import annotations

from bs4 import BeautifulSoup

from workers.price_monitor.parsing import node_text

# Most specific structured markup first, document <title> last.
NAME_SELECTORS: tuple[str, ...] = (
    '[itemtype*="schema.org/Product"] [itemprop="name"]',
    '[itemprop="name"]',
    ".product-name",
    ".product-title",
    "#product-title",
    ".product_title",
    'meta[property="og:title"]',
    "h1",
    "title",
)

# Shorter texts are empty or icon-only headings
MIN_NAME_LENGTH = 3


def find_name(soup: BeautifulSoup, selectors: tuple[str, ...] = NAME_SELECTORS) -> str:
    """Return the product name, or "" when no selector yields usable text."""
    for selector in selectors:
        element = soup.select_one(selector)
        if element is None:
            continue
        text = node_text(element) or (element.get("content") or "").strip()
        if len(text) > MIN_NAME_LENGTH:
            return text
    return ""
