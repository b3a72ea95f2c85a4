"""
Price extraction — ordered strategy cascade
============================================
No page schema can be assumed, so the price is found by an ordered list of
strategies, each `(soup) -> outcomes`. The first strategy that produces at
least one valid candidate wins and the chooser (lowest amount by default)
picks among its candidates.

Stages:
  1. metadata       product:price:amount / og:price:amount + currency meta
  2. primary        known-reliable price element; wins only with one valid match
  3. microdata      itemprop="price"
  4. known-class    "final price", "special price", ".price", ...
  5. generic-class  any class/id containing a price-like token
  6. broad-scan     every leaf element of the document

Stages 2–5 skip crossed-out / old / regular prices and count only the
innermost element of a nested group that carries a price.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from collections.abc import Callable, Sequence
from functools import partial

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from workers.price_monitor.models import (
    Currency,
    ExtractedPrice,
    MalformedAmount,
    PriceCandidate,
    PriceNotFound,
)
from workers.price_monitor.parsing import (
    currency_from_code,
    node_text,
    parse_machine_amount,
    parse_price_text,
)

logger = logging.getLogger(__name__)

ParseOutcome = PriceCandidate | MalformedAmount
PriceStrategy = Callable[[BeautifulSoup], list[ParseOutcome]]
CandidateChooser = Callable[[Sequence[PriceCandidate]], PriceCandidate]

# ── Selector tables ────────────────────────────────────────────────────

# (amount selector, currency selector)
METADATA_SELECTORS: tuple[tuple[str, str], ...] = (
    ('meta[property="product:price:amount"]', 'meta[property="product:price:currency"]'),
    ('meta[property="og:price:amount"]', 'meta[property="og:price:currency"]'),
    ('meta[itemprop="price"]', '[itemprop="priceCurrency"]'),
)

PRIMARY_PRICE_SELECTORS: tuple[str, ...] = (
    '.cena[id^="variant_price"]',
    "#priceblock_ourprice",
    '[data-price-type="finalPrice"]',
)

MICRODATA_PRICE_SELECTORS: tuple[str, ...] = (
    '[itemprop="price"]',
    '[itemprop="lowPrice"]',
)

KNOWN_PRICE_SELECTORS: tuple[str, ...] = (
    ".final-price",
    ".special-price",
    ".sale-price",
    ".price-sale",
    ".current-price",
    ".price-current",
    ".product-price",
    ".price-new",
    ".price",
    ".cena",
)

GENERIC_PRICE_SELECTORS: tuple[str, ...] = (
    '[class*="price"]',
    '[id*="price"]',
    '[class*="cena"]',
    '[id*="cena"]',
)

# Class/id tokens of crossed-out, "was" and secondary-currency prices
EXCLUDED_TOKENS = frozenset({
    "old", "oldprice", "regular", "regularprice", "original", "before", "was",
    "crossed", "strike", "strikethrough", "rrp", "msrp", "retail", "listprice",
    "secmena", "puvodni", "bezna",
})
STRUCK_TAGS = frozenset({"del", "s", "strike"})
SKIPPED_TAGS = frozenset({
    "script", "style", "noscript", "template", "head", "title", "meta", "link",
})

# How many ancestors are checked for an exclusion token
_EXCLUSION_DEPTH = 3
_TOKEN_SPLIT = re.compile(r"[-_\s]+")


# ── Element helpers ────────────────────────────────────────────────────

def _marker_tokens(element: Tag) -> set[str]:
    names = list(element.get("class") or [])
    element_id = element.get("id")
    if element_id:
        names.append(element_id)

    tokens: set[str] = set()
    for name in names:
        tokens.update(token for token in _TOKEN_SPLIT.split(name.lower()) if token)
    return tokens


def _is_struck(element: Tag) -> bool:
    return element.name in STRUCK_TAGS or not _marker_tokens(element).isdisjoint(EXCLUDED_TOKENS)


def is_excluded(element: Tag) -> bool:
    """True for crossed-out / old / regular prices and elements nested in one."""
    node: Tag | None = element
    for _ in range(_EXCLUSION_DEPTH + 1):
        if node is None or isinstance(node, BeautifulSoup):
            break
        if _is_struck(node):
            return True
        node = node.parent
    return False


def _price_text(element: Tag) -> str:
    """Element text without scripts and without struck-through descendants."""
    parts: list[str] = []
    for child in element.children:
        if isinstance(child, Tag):
            if child.name in SKIPPED_TAGS or _is_struck(child):
                continue
            parts.append(_price_text(child))
        elif isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            parts.append(str(child))
    return " ".join("".join(parts).split())


def _own_text(element: Tag) -> str:
    """First non-blank text node directly under the element (ignores nested notes)."""
    for child in element.children:
        if isinstance(child, NavigableString) and not isinstance(child, PreformattedString):
            text = child.strip()
            if text:
                return text
    return ""


def _document_currency(soup: BeautifulSoup) -> Currency | None:
    tag = soup.select_one('[itemprop="priceCurrency"]')
    if tag is None:
        return None
    return currency_from_code(tag.get("content") or node_text(tag))


def _element_outcome(
    element: Tag,
    currency: Currency | None,
    source: str,
) -> ParseOutcome | None:
    outcome = parse_price_text(_price_text(element), source)
    if isinstance(outcome, PriceCandidate):
        return outcome

    content = element.get("content")
    if content and currency is not None:
        return parse_machine_amount(content, currency, source)
    return outcome


# ── Strategies ─────────────────────────────────────────────────────────

def _metadata_candidates(soup: BeautifulSoup) -> list[ParseOutcome]:
    outcomes: list[ParseOutcome] = []
    for amount_selector, currency_selector in METADATA_SELECTORS:
        amount_tag = soup.select_one(amount_selector)
        if amount_tag is None:
            continue
        amount = (amount_tag.get("content") or "").strip()

        currency_tag = soup.select_one(currency_selector)
        currency = None
        if currency_tag is not None:
            currency = currency_from_code(currency_tag.get("content") or node_text(currency_tag))

        if not amount or currency is None:
            logger.debug("Metadata %s has no currency, skipped", amount_selector)
            continue
        outcomes.append(parse_machine_amount(amount, currency, f"metadata:{amount_selector}"))
    return outcomes


def _primary_candidates(soup: BeautifulSoup) -> list[ParseOutcome]:
    outcomes: list[ParseOutcome] = []
    for selector in PRIMARY_PRICE_SELECTORS:
        for element in soup.select(selector):
            source = f"primary:{selector}"
            outcome = parse_price_text(_own_text(element), source)
            if outcome is None:
                outcome = parse_price_text(_price_text(element), source)
            if outcome is not None:
                outcomes.append(outcome)

    valid = [o for o in outcomes if isinstance(o, PriceCandidate)]
    if len(valid) == 1:
        return valid
    # Several primary prices (variants): let the later stages decide
    return [o for o in outcomes if isinstance(o, MalformedAmount)]


def _selector_candidates(
    soup: BeautifulSoup,
    *,
    selectors: tuple[str, ...],
    stage: str,
) -> list[ParseOutcome]:
    currency = _document_currency(soup)
    seen: set[int] = set()
    matched: list[tuple[Tag, ParseOutcome]] = []

    for selector in selectors:
        for element in soup.select(selector):
            if id(element) in seen or element.name in SKIPPED_TAGS or is_excluded(element):
                continue
            seen.add(id(element))
            outcome = _element_outcome(element, currency, f"{stage}:{selector}")
            if outcome is not None:
                matched.append((element, outcome))

    priced = {id(element) for element, outcome in matched if isinstance(outcome, PriceCandidate)}
    outcomes: list[ParseOutcome] = []
    for element, outcome in matched:
        if isinstance(outcome, PriceCandidate) and any(
            id(descendant) in priced for descendant in element.find_all(True)
        ):
            # The nested price element is counted instead of its container
            continue
        outcomes.append(outcome)
    return outcomes


def _broad_scan_candidates(soup: BeautifulSoup) -> list[ParseOutcome]:
    outcomes: list[ParseOutcome] = []
    for element in soup.find_all(True):
        if element.name in SKIPPED_TAGS or element.find(True) is not None:
            continue
        if any(parent.name in SKIPPED_TAGS for parent in element.parents):
            continue
        outcome = parse_price_text(node_text(element, ""), f"broad-scan:{element.name}")
        if outcome is not None:
            outcomes.append(outcome)
    return outcomes


PRICE_STRATEGIES: tuple[tuple[str, PriceStrategy], ...] = (
    ("metadata", _metadata_candidates),
    ("primary", _primary_candidates),
    ("microdata", partial(_selector_candidates, selectors=MICRODATA_PRICE_SELECTORS, stage="microdata")),
    ("known-class", partial(_selector_candidates, selectors=KNOWN_PRICE_SELECTORS, stage="known-class")),
    ("generic-class", partial(_selector_candidates, selectors=GENERIC_PRICE_SELECTORS, stage="generic-class")),
    ("broad-scan", _broad_scan_candidates),
)


# ── Public interface ───────────────────────────────────────────────────

def lowest_candidate(candidates: Sequence[PriceCandidate]) -> PriceCandidate:
    """
    Default tie-break: sale prices are usually the smaller co-located figure.

    Amounts are only compared within one currency: the one most candidates
    share, or on a tie the currency of the earliest (highest priority) one.
    """
    counts = Counter(candidate.currency for candidate in candidates)
    top = max(counts.values())
    currency = next(c.currency for c in candidates if counts[c.currency] == top)
    return min(
        (c for c in candidates if c.currency is currency),
        key=lambda candidate: candidate.normalized_amount,
    )


def find_price(
    soup: BeautifulSoup,
    *,
    choose: CandidateChooser = lowest_candidate,
    strategies: tuple[tuple[str, PriceStrategy], ...] = PRICE_STRATEGIES,
) -> ExtractedPrice | PriceNotFound:
    """
    Run the strategy cascade and return the winning price.

    Args:
        soup: Parsed page. Never mutated.
        choose: Picks one candidate among the valid ones of a stage.
        strategies: Ordered (name, strategy) pairs.

    Returns:
        ExtractedPrice, or PriceNotFound carrying any malformed amounts
        seen on the way for diagnostics.
    """
    malformed: list[MalformedAmount] = []

    for stage, strategy in strategies:
        outcomes = strategy(soup)
        candidates = [o for o in outcomes if isinstance(o, PriceCandidate)]
        malformed.extend(o for o in outcomes if isinstance(o, MalformedAmount))
        if not candidates:
            continue

        best = choose(candidates)
        logger.debug(
            "Price %s %s picked by %s stage from %d candidates (%s)",
            best.normalized_amount, best.currency, stage, len(candidates), best.source,
        )
        return ExtractedPrice(
            amount=best.normalized_amount,
            currency=best.currency,
            source=best.source,
        )

    if malformed:
        logger.debug("No valid price; %d malformed amounts: %s", len(malformed), malformed[:3])
    return PriceNotFound(malformed=tuple(malformed))
