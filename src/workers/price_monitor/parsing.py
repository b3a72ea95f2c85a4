"""
Price text parsing
==================
Turns a raw text fragment ("Cena: 1.234,56 Kč", "€19.99", "1 299,- Kč")
into a validated PriceCandidate.

Rules:
  - A currency marker is mandatory ("€"/"EUR" => EUR, "Kč"/"CZK" => CZK).
    The currency is never guessed from the size of the amount.
  - Text wrapped in parentheses is a secondary (converted) price and is skipped.
  - Amounts must land in the open interval (0, 1_000_000).
"""

from __future__ import annotations

import math
import re

from bs4 import Tag

from workers.price_monitor.models import Currency, MalformedAmount, PriceCandidate

# ── Constants ──────────────────────────────────────────────────────────

MAX_PRICE = 1_000_000

_CURRENCY_BY_MARKER: dict[str, Currency] = {
    "€": Currency.EUR,
    "EUR": Currency.EUR,
    "Kč": Currency.CZK,
    "CZK": Currency.CZK,
}

# ── Regex Patterns ─────────────────────────────────────────────────────

# Digits with embedded separators: "19", "19,99", "1.234,56", "1 299"
_AMOUNT = r"\d+(?:[\s.,]\d+)*"

# ISO codes must not be glued to other letters ("EURO", "CZKX")
_EUR_CODE = r"(?<![A-Za-z])EUR(?![A-Za-z])"
_CZK_CODE = r"(?<![A-Za-z])CZK(?![A-Za-z])"

# "19,99 €", "1 299,- Kč", "250 CZK"
_SUFFIX_PRICE = re.compile(
    rf"(?P<amount>{_AMOUNT})(?:[.,]-{{1,2}})?\s*(?P<marker>€|{_EUR_CODE}|Kč|{_CZK_CODE})"
)
# "€19.99", "EUR 19,99"
_PREFIX_PRICE = re.compile(
    rf"(?P<marker>€|{_EUR_CODE}|{_CZK_CODE})\s*(?P<amount>{_AMOUNT})"
)

_PARENTHESIZED = re.compile(r"\([^()]*\)")
_WHITESPACE = re.compile(r"\s+")
_DECIMAL_COMMA = re.compile(r",\d{2}$")
_DECIMAL_DOT = re.compile(r"\.\d{2}$")


def node_text(element: Tag, separator: str = " ") -> str:
    """Text of a node and its descendants, whitespace-collapsed."""
    return _WHITESPACE.sub(" ", element.get_text(separator)).strip()


def normalize_amount(amount_text: str) -> float | None:
    """
    Convert a matched amount into a float.

    A comma followed by exactly two trailing digits is the decimal separator
    (dots become thousands separators); otherwise commas are thousands
    separators. With only dots left, a dot followed by exactly two trailing
    digits is decimal, any other dot is a thousands separator.

    Returns None when the text is not a finite number.
    """
    cleaned = _WHITESPACE.sub("", amount_text)
    if not cleaned:
        return None

    if _DECIMAL_COMMA.search(cleaned):
        head, _, tail = cleaned.rpartition(",")
        normalized = re.sub(r"[.,]", "", head) + "." + tail
    else:
        normalized = cleaned.replace(",", "")
        if _DECIMAL_DOT.search(normalized):
            head, _, tail = normalized.rpartition(".")
            normalized = head.replace(".", "") + "." + tail
        else:
            normalized = normalized.replace(".", "")

    try:
        value = float(normalized)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def is_plausible_amount(value: float) -> bool:
    """Guards against phone numbers, SKUs and quantities parsed as prices."""
    return 0 < value < MAX_PRICE


def parse_price_text(text: str, source: str = "") -> PriceCandidate | MalformedAmount | None:
    """
    Parse one candidate string.

    Returns a PriceCandidate when valid, MalformedAmount when a currency
    marker was found but the amount is unusable, and None when the text
    holds no currency-tagged number at all.
    """
    stripped = text.strip()
    if not stripped:
        return None
    if stripped.startswith("(") and stripped.endswith(")"):
        return None

    visible = _PARENTHESIZED.sub(" ", stripped)
    match = _SUFFIX_PRICE.search(visible) or _PREFIX_PRICE.search(visible)
    if match is None:
        return None

    amount_text = match.group("amount").strip()
    value = normalize_amount(amount_text)
    if value is None or not is_plausible_amount(value):
        return MalformedAmount(raw_text=stripped[:200], source=source)

    return PriceCandidate(
        amount_text=amount_text,
        normalized_amount=value,
        currency=_CURRENCY_BY_MARKER[match.group("marker")],
        source=source,
    )


def currency_from_code(code: str | None) -> Currency | None:
    """Map an ISO code from page metadata ("EUR", "czk") to a Currency."""
    if not code:
        return None
    try:
        return Currency(code.strip().upper())
    except ValueError:
        return None


def parse_machine_amount(
    amount_text: str,
    currency: Currency,
    source: str = "",
) -> PriceCandidate | MalformedAmount:
    """
    Parse a machine-readable amount (meta/itemprop "content" attribute).

    These use a plain dot decimal ("129.9"), so float() is tried before
    the locale-aware normalization.
    """
    amount_text = amount_text.strip()
    try:
        value: float | None = float(amount_text)
    except ValueError:
        value = normalize_amount(amount_text)

    if value is None or not math.isfinite(value) or not is_plausible_amount(value):
        return MalformedAmount(raw_text=amount_text[:200], source=source)
    return PriceCandidate(
        amount_text=amount_text,
        normalized_amount=value,
        currency=currency,
        source=source,
    )
