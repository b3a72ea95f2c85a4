"""Tests for the price strategy cascade."""

import pytest
from bs4 import BeautifulSoup

from workers.price_monitor.extractors.price import find_price, is_excluded, lowest_candidate
from workers.price_monitor.models import Currency, ExtractedPrice, PriceCandidate, PriceNotFound


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestMetadataStage:
    """Tests for product:price / og:price meta tags."""

    def test_amount_with_currency(self):
        soup = _soup("""
            <head>
                <meta property="product:price:amount" content="129.90">
                <meta property="product:price:currency" content="EUR">
            </head>
            <body><span class="price">99 €</span></body>
        """)
        result = find_price(soup)
        assert isinstance(result, ExtractedPrice)
        assert result.amount == pytest.approx(129.90)
        assert result.currency is Currency.EUR
        assert result.source.startswith("metadata:")

    def test_amount_without_currency_is_ignored(self):
        """Test a bare meta amount never validates; the cascade recovers."""
        soup = _soup("""
            <head><meta property="product:price:amount" content="129.90"></head>
            <body><span class="price">119,90 €</span></body>
        """)
        result = find_price(soup)
        assert isinstance(result, ExtractedPrice)
        assert result.amount == pytest.approx(119.90)
        assert result.currency is Currency.EUR

    def test_og_price_czk(self):
        soup = _soup("""
            <meta property="og:price:amount" content="2499">
            <meta property="og:price:currency" content="CZK">
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(2499.0)
        assert result.currency is Currency.CZK


class TestPrimaryElement:
    """Tests for the primary price element short-circuit."""

    def test_primary_euro(self):
        """Test "19,99 €" in the primary price element."""
        soup = _soup("""
            <div class="price">9,99 €</div>
            <span class="cena" id="variant_price_123">19,99 €</span>
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(19.99)
        assert result.currency is Currency.EUR
        assert result.source.startswith("primary:")

    def test_own_text_ignores_nested_notes(self):
        """Test the first own text node is read, not a nested unit note."""
        soup = _soup("""
            <span class="cena" id="variant_price_1">1 299,- Kč <small>(1 074 Kč bez DPH)</small></span>
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(1299.0)
        assert result.currency is Currency.CZK

    def test_several_primary_prices_fall_through(self):
        """Test variants with different primary prices are resolved by later stages."""
        soup = _soup("""
            <span class="cena" id="variant_price_1">25 €</span>
            <span class="cena" id="variant_price_2">22 €</span>
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(22.0)
        assert result.source.startswith("known-class:")


class TestSelectorCascade:
    """Tests for the class/microdata selector stages."""

    def test_czk_with_thousands_dot(self):
        result = find_price(_soup('<p class="product-price">1.234,56 Kč</p>'))
        assert result.amount == pytest.approx(1234.56)
        assert result.currency is Currency.CZK

    def test_old_price_excluded(self):
        """Test an "old" price loses to the "special" one."""
        soup = _soup("""
            <div class="prices">
                <span class="price old-price">89 €</span>
                <span class="price special-price">69 €</span>
            </div>
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(69.0)

    def test_lowest_wins_in_stage(self):
        soup = _soup('<span class="price">45 €</span><span class="price">39 €</span>')
        assert find_price(soup).amount == pytest.approx(39.0)

    def test_struck_content_excluded(self):
        """Test <del>/<s> content inside a price container is ignored."""
        soup = _soup('<div class="price"><del>89 €</del> <span>79 €</span></div>')
        result = find_price(soup)
        assert result.amount == pytest.approx(79.0)

    def test_secondary_currency_excluded(self):
        soup = _soup("""
            <div class="price">19,99 €</div>
            <div class="price secmena">479 Kč</div>
        """)
        result = find_price(soup)
        assert result.currency is Currency.EUR
        assert result.amount == pytest.approx(19.99)

    def test_innermost_counted(self):
        """Test a container and its child are not both counted."""
        soup = _soup("""
            <div class="product-price">Now only <span class="price">15 €</span> (was 20 €)</div>
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(15.0)

    def test_microdata_content_with_currency(self):
        soup = _soup("""
            <div itemprop="offers">
                <span itemprop="price" content="349.00">349 EUR</span>
                <span itemprop="priceCurrency" content="EUR"></span>
            </div>
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(349.0)
        assert result.source.startswith("microdata:")

    def test_microdata_content_only(self):
        """Test the content attribute is used when the text has no marker."""
        soup = _soup("""
            <span itemprop="price" content="1234.5">1 234,50</span>
            <meta itemprop="priceCurrency" content="CZK">
        """)
        result = find_price(soup)
        assert result.amount == pytest.approx(1234.5)
        assert result.currency is Currency.CZK

    def test_generic_class_token(self):
        result = find_price(_soup('<b id="js-product-cena">749 Kč</b>'))
        assert result.amount == pytest.approx(749.0)
        assert result.source.startswith("generic-class:")


class TestBroadScan:
    """Tests for the last-resort leaf scan."""

    def test_leaf_scan(self):
        soup = _soup("<div><p>Great deal</p><strong>12,50 €</strong></div>")
        result = find_price(soup)
        assert result.amount == pytest.approx(12.5)
        assert result.source.startswith("broad-scan:")

    def test_scripts_ignored(self):
        soup = _soup('<script>var p = "10 €";</script><p>no price</p>')
        assert isinstance(find_price(soup), PriceNotFound)


class TestNotFound:
    """Tests for the failure value."""

    def test_no_marker(self):
        """Test "1,234.56" without a currency is not a price."""
        result = find_price(_soup('<span class="price">1,234.56</span>'))
        assert isinstance(result, PriceNotFound)

    def test_out_of_range_reported_as_malformed(self):
        result = find_price(_soup('<span class="price">1 000 000 €</span>'))
        assert isinstance(result, PriceNotFound)
        assert result.malformed
        assert result.malformed[0].raw_text == "1 000 000 €"

    def test_empty_document(self):
        assert isinstance(find_price(_soup("")), PriceNotFound)


class TestChooser:
    def test_lowest_candidate(self):
        candidates = [
            PriceCandidate("45", 45.0, Currency.EUR),
            PriceCandidate("39", 39.0, Currency.EUR),
        ]
        assert lowest_candidate(candidates).normalized_amount == 39.0

    def test_majority_currency_wins(self):
        """Test a lone amount in another currency is not compared against the rest."""
        candidates = [
            PriceCandidate("1 299", 1299.0, Currency.CZK),
            PriceCandidate("49,90", 49.90, Currency.EUR),
            PriceCandidate("1 349", 1349.0, Currency.CZK),
        ]
        best = lowest_candidate(candidates)
        assert best.currency is Currency.CZK
        assert best.normalized_amount == 1299.0

    def test_currency_tie_keeps_first_currency(self):
        candidates = [
            PriceCandidate("52.90", 52.90, Currency.EUR),
            PriceCandidate("20", 20.0, Currency.CZK),
        ]
        assert lowest_candidate(candidates).currency is Currency.EUR

    def test_mixed_metadata_currencies(self):
        soup = _soup("""
            <meta property="product:price:amount" content="52.90">
            <meta property="product:price:currency" content="EUR">
            <meta property="og:price:amount" content="20">
            <meta property="og:price:currency" content="CZK">
        """)
        result = find_price(soup)
        assert result.currency is Currency.EUR
        assert result.amount == pytest.approx(52.90)

    def test_custom_chooser(self):
        soup = _soup('<span class="price">45 €</span><span class="price">39 €</span>')
        result = find_price(soup, choose=lambda cs: max(cs, key=lambda c: c.normalized_amount))
        assert result.amount == pytest.approx(45.0)


def test_is_excluded_checks_ancestors():
    soup = _soup('<div class="price-before"><p><span class="price">10 €</span></p></div>')
    assert is_excluded(soup.select_one("span.price"))


def test_find_price_idempotent():
    soup = _soup('<span class="price">45 €</span><span class="price-old">59 €</span>')
    first = find_price(soup)
    assert find_price(soup) == first
    assert first.amount == pytest.approx(45.0)
