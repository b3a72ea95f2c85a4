"""Data models for the price extraction pipeline (candidates, results, failures)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class Currency(StrEnum):
    """Currencies the extractor can recognise on a page."""

    EUR = "EUR"
    CZK = "CZK"


@dataclass(frozen=True, slots=True)
class PriceCandidate:
    """A text fragment that passed validation and parsed into a price."""

    amount_text: str                   # raw matched substring, ej: "1.234,56"
    normalized_amount: float
    currency: Currency
    source: str = ""                   # diagnostic only, ej: "known-class:.price"


@dataclass(frozen=True, slots=True)
class MalformedAmount:
    """A currency marker was found but the amount next to it did not parse."""

    raw_text: str
    source: str = ""


@dataclass(frozen=True, slots=True)
class ExtractedPrice:
    """The winning price of a page."""

    amount: float
    currency: Currency
    source: str = ""


@dataclass(frozen=True, slots=True)
class NameNotFound:
    """No selector in the name cascade yielded usable text."""

    message: str = "Could not determine the product name."


@dataclass(frozen=True, slots=True)
class PriceNotFound:
    """No extraction stage produced a valid price candidate."""

    message: str = "Could not find a price on the page."
    malformed: tuple[MalformedAmount, ...] = ()


ExtractionFailure = NameNotFound | PriceNotFound


@dataclass(frozen=True, slots=True)
class ExtractionResult:
    """Consolidated result of one extraction run."""

    name: str
    price: float
    currency: Currency
