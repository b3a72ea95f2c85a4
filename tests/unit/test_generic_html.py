"""Tests for GenericHtmlExtractor."""

import pytest

from workers.price_monitor.extractors.generic_html import GenericHtmlExtractor
from workers.price_monitor.models import (
    Currency,
    ExtractedPrice,
    ExtractionResult,
    NameNotFound,
    PriceNotFound,
)

PRODUCT_PAGE = """
<html>
<head><title>Kávovar Philips EP2220 | Shop</title></head>
<body>
  <h1 class="product-name">Kávovar Philips EP2220</h1>
  <div class="price-box">
    <span class="price old-price">399,00 €</span>
    <span class="price final-price">329,00 €</span>
  </div>
  <div class="related"><span class="bundle-total">289,00 €</span></div>
</body>
</html>
"""


class TestExtract:
    """Tests for the full name + price extraction."""

    def test_success(self):
        result = GenericHtmlExtractor(PRODUCT_PAGE, "https://shop.example/p/1").extract()
        assert isinstance(result, ExtractionResult)
        assert result.name == "Kávovar Philips EP2220"
        assert result.price == pytest.approx(329.0)
        assert result.currency is Currency.EUR

    def test_name_not_found(self):
        result = GenericHtmlExtractor('<div class="price">10 €</div>').extract()
        assert isinstance(result, NameNotFound)
        assert result.message

    def test_price_not_found(self):
        result = GenericHtmlExtractor("<h1>Kávovar Philips</h1><p>Vypredané</p>").extract()
        assert isinstance(result, PriceNotFound)

    def test_failure_messages_differ(self):
        assert NameNotFound().message != PriceNotFound().message


class TestSelectorHint:
    """Tests for the per-product selector hint."""

    def test_css_hint_wins(self):
        extractor = GenericHtmlExtractor(PRODUCT_PAGE, selector_hint=".related .bundle-total")
        price = extractor.extract_price()
        assert isinstance(price, ExtractedPrice)
        assert price.amount == pytest.approx(289.0)
        assert price.source.startswith("hint:")

    def test_xpath_hint(self):
        extractor = GenericHtmlExtractor(
            PRODUCT_PAGE, selector_hint="(//div[@class='price-box']/span)[1]"
        )
        assert extractor.extract_price().amount == pytest.approx(399.0)

    def test_hint_without_match_falls_back(self):
        extractor = GenericHtmlExtractor(PRODUCT_PAGE, selector_hint="#does-not-exist")
        assert extractor.extract_price().amount == pytest.approx(329.0)

    def test_unsupported_hint_falls_back(self):
        extractor = GenericHtmlExtractor(PRODUCT_PAGE, selector_hint="//span/ancestor::div")
        assert extractor.extract_price().amount == pytest.approx(329.0)

    def test_hint_without_currency_falls_back(self):
        html = PRODUCT_PAGE.replace("</body>", '<b id="sku">12345</b></body>')
        extractor = GenericHtmlExtractor(html, selector_hint="#sku")
        assert extractor.extract_price().amount == pytest.approx(329.0)


def test_extract_is_idempotent():
    extractor = GenericHtmlExtractor(PRODUCT_PAGE)
    assert extractor.extract() == extractor.extract()
