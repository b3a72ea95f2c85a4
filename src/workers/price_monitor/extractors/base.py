"""Abstract base class for page extractors."""

from __future__ import annotations

from abc import ABC, abstractmethod

from workers.price_monitor.models import ExtractionResult, NameNotFound, PriceNotFound


class BaseExtractor(ABC):
    """
    Contract for all product page extractors.

    HTML and the page URL are injected via __init__. Subclasses parse the
    page and return typed results, never raw dicts.

    Principles:
    - Return NameNotFound / PriceNotFound values on extraction failure (never raise).
    - Log at DEBUG which strategy produced the result.
    - Extraction is synchronous and touches no shared state.
    """

    def __init__(self, html: str, url: str | None = None) -> None:
        self.html = html
        self.url = url

    @abstractmethod
    def extract(self) -> ExtractionResult | NameNotFound | PriceNotFound:
        """
        Main entry point. Runs the name and price extraction and returns
        a consolidated ExtractionResult or the first failure.
        """
        ...
