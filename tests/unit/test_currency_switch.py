"""Tests for the currency switch pre-step."""

import pytest
from bs4 import BeautifulSoup

from workers.price_monitor.currency_switch import ensure_preferred_currency, find_currency_link
from workers.price_monitor.fetcher import FetchBlocked
from workers.price_monitor.models import Currency

BASE_URL = "https://shop.example/produkt/42"

CZK_PAGE = """
<nav>
  <a href="#top">Nahoru</a>
  <a href="javascript:void(0)">€</a>
  <a href="/mena/eur">€ Euro</a>
  <a href="/mena/czk">CZK</a>
</nav>
<span class="price">1 299 Kč</span>
"""


class TestFindCurrencyLink:
    def test_finds_euro_link(self):
        soup = BeautifulSoup(CZK_PAGE, "html.parser")
        assert find_currency_link(soup, Currency.EUR) == "/mena/eur"

    def test_finds_koruna_link(self):
        soup = BeautifulSoup(CZK_PAGE, "html.parser")
        assert find_currency_link(soup, Currency.CZK) == "/mena/czk"

    def test_long_text_ignored(self):
        html = '<a href="/blog">Ako sme prešli na euro a čo to znamená pre našich zákazníkov</a>'
        assert find_currency_link(BeautifulSoup(html, "html.parser"), Currency.EUR) is None

    @pytest.mark.parametrize(
        "label",
        ["Doprava zdarma nad 39 €", "Mlynček 19,99 €", "Cena v EUR 52,90", "Platba v eurách aj korunách"],
    )
    def test_price_bearing_links_ignored(self, label):
        """Test links that mention a price or currency in passing are not switchers."""
        html = f'<a href="/other">{label}</a>'
        assert find_currency_link(BeautifulSoup(html, "html.parser"), Currency.EUR) is None

    @pytest.mark.parametrize("label", ["EUR", "€", "Euro (€)", "eur"])
    def test_euro_labels(self, label):
        html = f'<a href="/mena/eur">{label}</a>'
        assert find_currency_link(BeautifulSoup(html, "html.parser"), Currency.EUR) == "/mena/eur"

    @pytest.mark.parametrize("label", ["Kč", "CZK", "Koruny", "Kč CZK"])
    def test_koruna_labels(self, label):
        html = f'<a href="/mena/czk">{label}</a>'
        assert find_currency_link(BeautifulSoup(html, "html.parser"), Currency.CZK) == "/mena/czk"


class TestEnsurePreferredCurrency:
    async def test_switches(self, serve_pages):
        transport = serve_pages({
            "https://shop.example/mena/eur": '<span class="price">52,90 €</span>',
        })
        html = await ensure_preferred_currency(CZK_PAGE, BASE_URL, Currency.EUR, transport=transport)
        assert "52,90 €" in html
        assert transport.requested == ["https://shop.example/mena/eur"]

    async def test_no_link_returns_original(self, serve_pages):
        transport = serve_pages({})
        original = '<span class="price">52,90 €</span>'
        html = await ensure_preferred_currency(original, BASE_URL, Currency.EUR, transport=transport)
        assert html is original
        assert transport.requested == []

    async def test_failed_switch_propagates(self, serve_pages):
        transport = serve_pages({"https://shop.example/mena/eur": 503})
        with pytest.raises(FetchBlocked):
            await ensure_preferred_currency(CZK_PAGE, BASE_URL, Currency.EUR, transport=transport)

    async def test_shipping_link_not_followed(self, serve_pages):
        """Test a price-bearing link never replaces the product page."""
        page = '<span class="price">1 299 Kč</span><a href="/doprava">Doprava zdarma nad 39 €</a>'
        transport = serve_pages({"https://shop.example/doprava": "<h1>Doprava</h1><span class='price'>39 €</span>"})
        html = await ensure_preferred_currency(page, BASE_URL, Currency.EUR, transport=transport)
        assert html is page
        assert transport.requested == []

    async def test_already_in_preferred_currency(self, serve_pages):
        """Test a page priced in the preferred currency is not refetched."""
        page = '<span class="price">52,90 €</span><a href="/mena/eur">EUR</a>'
        transport = serve_pages({"https://shop.example/mena/eur": '<span class="price">52,90 €</span>'})
        html = await ensure_preferred_currency(page, BASE_URL, Currency.EUR, transport=transport)
        assert html is page
        assert transport.requested == []
