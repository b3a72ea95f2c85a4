"""
Price Monitor Orchestrator — ARQ Job
=====================================
Main job that:
1. Reads all tracked products from DB
2. Downloads each page (HTTPX), optionally switching currency first
3. Extracts the price with GenericHtmlExtractor
4. Appends a PriceHistory entry and updates the Product
5. Sends a Slack alert when the price dropped

Products are checked independently: one failing page is logged and
counted, and leaves that product's stored state untouched.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from uuid import uuid4

import httpx
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.models import PriceHistory, Product
from workers.price_monitor.alerts import notify_price_drop, should_notify_price_drop
from workers.price_monitor.currency_switch import ensure_preferred_currency
from workers.price_monitor.extractors.generic_html import GenericHtmlExtractor
from workers.price_monitor.fetcher import FetchError, fetch_page_html
from workers.price_monitor.models import (
    ExtractedPrice,
    ExtractionFailure,
    ExtractionResult,
    NameNotFound,
    PriceNotFound,
)

logger = logging.getLogger(__name__)


class ExtractionFailed(Exception):
    """Raised by service calls that need a price (and name) to proceed."""

    def __init__(self, url: str, failure: ExtractionFailure) -> None:
        super().__init__(failure.message)
        self.url = url
        self.failure = failure


async def load_page(
    url: str,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> str:
    """Fetch a product page, following the currency switch link if enabled."""
    html = await fetch_page_html(url, transport=transport)
    if settings.switch_currency:
        html = await ensure_preferred_currency(html, url, transport=transport)
    return html


async def check_url(
    url: str,
    selector: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExtractionResult | NameNotFound | PriceNotFound:
    """Fetch a page and extract name + price without storing anything."""
    html = await load_page(url, transport=transport)
    return GenericHtmlExtractor(html, url, selector_hint=selector).extract()


async def fetch_product_price(
    product: Product,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExtractedPrice | PriceNotFound:
    """Re-check a stored product. Only the price is needed here."""
    html = await load_page(product.url, transport=transport)
    extractor = GenericHtmlExtractor(html, product.url, selector_hint=product.price_selector)
    return extractor.extract_price()


async def add_product(
    session: AsyncSession,
    url: str,
    selector: str | None = None,
    name: str | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Product:
    """
    Start tracking a product page.

    A user-supplied name wins over the extracted one (and rescues pages
    where no name can be found).

    Raises:
        FetchError: the page could not be downloaded.
        ExtractionFailed: no price, or no name and none supplied.
    """
    html = await load_page(url, transport=transport)
    extractor = GenericHtmlExtractor(html, url, selector_hint=selector)

    price = extractor.extract_price()
    if isinstance(price, PriceNotFound):
        raise ExtractionFailed(url, price)

    product_name = (name or "").strip() or extractor.extract_name()
    if not product_name:
        raise ExtractionFailed(url, NameNotFound())

    now = datetime.now(timezone.utc)
    product = Product(
        id=str(uuid4()),
        url=url,
        price_selector=selector or None,
        name=product_name[:255],
        current_price=price.amount,
        previous_price=None,
        currency=price.currency.value,
        last_checked=now,
        created_at=now,
    )
    session.add(product)
    session.add(
        PriceHistory(
            product_id=product.id,
            price=price.amount,
            currency=price.currency.value,
            recorded_at=now,
        )
    )
    await session.flush()
    logger.info("Tracking %s (%s) at %s %s", product.name, product.id, price.amount, price.currency)
    return product


def refresh_product(
    session: AsyncSession,
    product: Product,
    price: ExtractedPrice,
    *,
    checked_at: datetime | None = None,
) -> PriceHistory:
    """Record a successful check on the product and append a history entry."""
    checked_at = checked_at or datetime.now(timezone.utc)
    product.previous_price = product.current_price
    product.current_price = price.amount
    product.currency = price.currency.value
    product.last_checked = checked_at

    entry = PriceHistory(
        product_id=product.id,
        price=price.amount,
        currency=price.currency.value,
        recorded_at=checked_at,
    )
    session.add(entry)
    return entry


async def list_products(session: AsyncSession) -> list[Product]:
    result = await session.execute(select(Product).order_by(Product.created_at, Product.id))
    return list(result.scalars().all())


async def get_product(session: AsyncSession, product_id: str) -> Product | None:
    return await session.get(Product, product_id)


async def delete_product(session: AsyncSession, product_id: str) -> bool:
    """Delete a product and its history. False when it does not exist."""
    product = await session.get(Product, product_id)
    if product is None:
        return False
    name = product.name
    await session.execute(delete(PriceHistory).where(PriceHistory.product_id == product_id))
    await session.execute(delete(Product).where(Product.id == product_id))
    logger.info("Stopped tracking %s (%s)", name, product_id)
    return True


async def list_price_history(session: AsyncSession, product_id: str) -> list[PriceHistory]:
    """Price history of a product, oldest first."""
    result = await session.execute(
        select(PriceHistory)
        .where(PriceHistory.product_id == product_id)
        .order_by(PriceHistory.recorded_at, PriceHistory.id)
    )
    return list(result.scalars().all())


async def check_all_products(
    session: AsyncSession,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict:
    """
    Re-check every tracked product.

    Pages are fetched and parsed concurrently (bounded by
    settings.max_concurrent_checks); results are then written one by one
    on the shared session.
    """
    products = await list_products(session)
    logger.info("  Found %d products to check", len(products))

    semaphore = asyncio.Semaphore(settings.max_concurrent_checks)

    async def _check(product: Product) -> ExtractedPrice | PriceNotFound:
        async with semaphore:
            return await fetch_product_price(product, transport=transport)

    outcomes = await asyncio.gather(
        *(_check(product) for product in products),
        return_exceptions=True,
    )

    successes = 0
    failures = 0
    price_drops = 0
    for product, outcome in zip(products, outcomes):
        if isinstance(outcome, FetchError):
            logger.warning("  %s: %s", product.url, outcome.message)
            failures += 1
            continue
        if isinstance(outcome, PriceNotFound):
            logger.warning("  %s: %s", product.url, outcome.message)
            failures += 1
            continue
        if isinstance(outcome, Exception):
            logger.error("  %s: unexpected error: %r", product.url, outcome)
            failures += 1
            continue
        if isinstance(outcome, BaseException):
            raise outcome

        refresh_product(session, product, outcome)
        successes += 1
        logger.info("  %s: %s %s", product.name, outcome.amount, outcome.currency)

        history = await list_price_history(session, product.id)
        if should_notify_price_drop(history):
            price_drops += 1
            await notify_price_drop(product, history)

    await session.flush()
    return {"successes": successes, "failures": failures, "price_drops": price_drops}


async def run_price_monitor(ctx: dict) -> dict:
    """
    ARQ job entry point.
    Re-checks all tracked products.
    """
    from core.database import async_session_factory

    session_factory = ctx.get("session_factory", async_session_factory)
    async with session_factory() as session:
        logger.info("🔎 Price check started")
        summary = await check_all_products(session, transport=ctx.get("transport"))
        await session.commit()

    logger.info(
        "🏁 Price check finished: %d success, %d failures, %d price drops",
        summary["successes"], summary["failures"], summary["price_drops"],
    )
    return summary
