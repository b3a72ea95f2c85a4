"""
Generic HTML Extractor — heuristic name + price extraction
===========================================================
Extractor for any product page. No platform schema is assumed.

Extracts:
  - name:  ordered selector cascade (see extractors.name)
  - price: optional user selector hint (CSS or XPath subset), then the
           strategy cascade (see extractors.price)

Returns NameNotFound / PriceNotFound values instead of raising.
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from workers.price_monitor.extractors.base import BaseExtractor
from workers.price_monitor.extractors.name import find_name
from workers.price_monitor.extractors.price import (
    CandidateChooser,
    find_price,
    lowest_candidate,
)
from workers.price_monitor.models import (
    ExtractedPrice,
    ExtractionResult,
    NameNotFound,
    PriceCandidate,
    PriceNotFound,
)
from workers.price_monitor.parsing import parse_price_text
from workers.price_monitor.xpath import resolve

logger = logging.getLogger(__name__)


class GenericHtmlExtractor(BaseExtractor):
    """
    Heuristic extractor for arbitrary e-commerce product pages.
    """

    def __init__(
        self,
        html: str,
        url: str | None = None,
        *,
        selector_hint: str | None = None,
        choose: CandidateChooser = lowest_candidate,
    ) -> None:
        super().__init__(html, url)
        self.soup = BeautifulSoup(html, "html.parser")
        self.selector_hint = (selector_hint or "").strip() or None
        self.choose = choose

    # ── Public interface (required by BaseExtractor) ───────────────────

    def extract(self) -> ExtractionResult | NameNotFound | PriceNotFound:
        name = self.extract_name()
        if not name:
            logger.info("No product name found on %s", self.url)
            return NameNotFound()

        price = self.extract_price()
        if isinstance(price, PriceNotFound):
            logger.info("No price found on %s", self.url)
            return price

        return ExtractionResult(name=name, price=price.amount, currency=price.currency)

    def extract_name(self) -> str:
        return find_name(self.soup)

    def extract_price(self) -> ExtractedPrice | PriceNotFound:
        """Selector hint first (when it resolves to a usable price), then the cascade."""
        if self.selector_hint:
            hinted = self._price_from_hint()
            if hinted is not None:
                return hinted
            logger.debug("Selector hint %r gave no price, falling back to cascade", self.selector_hint)

        return find_price(self.soup, choose=self.choose)

    # ── Private extraction methods ─────────────────────────────────────

    def _price_from_hint(self) -> ExtractedPrice | None:
        text = resolve(self.soup, self.selector_hint or "")
        if not text:
            return None
        outcome = parse_price_text(text, f"hint:{self.selector_hint}")
        if not isinstance(outcome, PriceCandidate):
            return None
        return ExtractedPrice(
            amount=outcome.normalized_amount,
            currency=outcome.currency,
            source=outcome.source,
        )
