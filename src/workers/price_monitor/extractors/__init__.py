"""Extractors package for product name and price extraction."""

from workers.price_monitor.extractors.base import BaseExtractor
from workers.price_monitor.extractors.generic_html import GenericHtmlExtractor
from workers.price_monitor.extractors.name import find_name
from workers.price_monitor.extractors.price import find_price, lowest_candidate

__all__ = [
    "BaseExtractor",
    "GenericHtmlExtractor",
    "find_name",
    "find_price",
    "lowest_candidate",
]
