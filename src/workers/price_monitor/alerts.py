"""Price drop detection and alert formatting."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from core.config import settings
from core.notifications.slack import price_drop_blocks, send_slack_alert
from workers.price_monitor.models import Currency

if TYPE_CHECKING:
    from core.models import PriceHistory, Product

logger = logging.getLogger(__name__)

_SYMBOLS = {Currency.EUR.value: "€", Currency.CZK.value: "Kč"}


def format_price(amount: float, currency: str) -> str:
    """Slovak formatting: 1234.5 EUR -> "1 234,50 €"."""
    symbol = _SYMBOLS.get(str(currency), currency)
    formatted = f"{amount:,.2f}".replace(",", " ").replace(".", ",")
    return f"{formatted} {symbol}"


def should_notify_price_drop(history: Sequence[PriceHistory]) -> bool:
    """
    History is ordered oldest first; a drop is latest < the one before.
    Entries in different currencies are not comparable and never alert.
    """
    if len(history) < 2:
        return False
    previous, current = history[-2], history[-1]
    if current.currency != previous.currency:
        return False
    return current.price < previous.price


async def notify_price_drop(product: Product, history: Sequence[PriceHistory]) -> bool:
    """
    Send a price drop alert for a product.

    Silent no-op (False) when there is no drop, alerts are disabled or no
    alert channel is configured.
    """
    if not settings.alerts_enabled or not should_notify_price_drop(history):
        return False

    previous, current = history[-2], history[-1]
    old_price = format_price(previous.price, previous.currency)
    new_price = format_price(current.price, current.currency)
    text = f"Price drop! {product.name}: {old_price} → {new_price}\n{product.url}"
    logger.info("Price drop for %s: %s -> %s", product.id, previous.price, current.price)
    return await send_slack_alert(
        text,
        blocks=price_drop_blocks(product.name, product.url, old_price, new_price),
    )
