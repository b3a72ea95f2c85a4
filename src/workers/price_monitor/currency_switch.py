"""
Currency switch pre-step.

Some shops default to another display currency and offer an in-page link
("EUR", "€ Euro", "CZK") that switches it. When such a link exists the
linked page is fetched once and its markup replaces the original one.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from core.config import settings
from workers.price_monitor.extractors.price import find_price
from workers.price_monitor.fetcher import fetch_page_html
from workers.price_monitor.models import Currency, ExtractedPrice

logger = logging.getLogger(__name__)

_CURRENCY_LABELS: dict[Currency, re.Pattern[str]] = {
    Currency.EUR: re.compile(r"€|(?:€\s*)?(?:EUR|Euro|Eura)(?:\s*\(€\))?", re.IGNORECASE),
    Currency.CZK: re.compile(r"Kč|(?:Kč\s*)?(?:CZK|Korun[ay]?)(?:\s*\(Kč\))?", re.IGNORECASE),
}

# A switcher label never carries an amount ("nad 39 €", "19,99 €")
_DIGIT = re.compile(r"\d")
_WHITESPACE = re.compile(r"\s+")


def find_currency_link(soup: BeautifulSoup, currency: Currency) -> str | None:
    """Return the href of the first anchor whose whole visible text is a label of the currency."""
    pattern = _CURRENCY_LABELS[currency]
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith(("#", "javascript:", "mailto:")):
            continue
        text = _WHITESPACE.sub(" ", anchor.get_text(" ", strip=True))
        if not text or _DIGIT.search(text):
            continue
        if pattern.fullmatch(text):
            return href
    return None


async def ensure_preferred_currency(
    html: str,
    base_url: str,
    currency: Currency | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """
    Return the page markup in the preferred currency.

    Pages already priced in that currency, and pages without a switch
    link, are returned unchanged.
    A failing secondary fetch propagates as a FetchError.
    """
    currency = currency or Currency(settings.preferred_currency.upper())
    soup = BeautifulSoup(html, "html.parser")
    shown = find_price(soup)
    if isinstance(shown, ExtractedPrice) and shown.currency is currency:
        return html

    href = find_currency_link(soup, currency)
    if href is None:
        return html

    target = urljoin(base_url, href)
    logger.info("Switching %s to %s via %s", base_url, currency, target)
    return await fetch_page_html(target, transport=transport)
