"""
check_price.py
==============
One-off price check for a product URL (nothing is stored).

Usage:
    python scripts/check_price.py https://shop.example/product --selector ".price"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from workers.price_monitor.alerts import format_price  # noqa: E402
from workers.price_monitor.fetcher import FetchError  # noqa: E402
from workers.price_monitor.models import ExtractionResult  # noqa: E402
from workers.price_monitor.orchestrator import check_url  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s")
logger = logging.getLogger("check_price")


async def async_main(url: str, selector: str | None) -> int:
    try:
        result = await check_url(url, selector)
    except FetchError as exc:
        logger.error("%s", exc.message)
        return 1

    if not isinstance(result, ExtractionResult):
        logger.error("%s", result.message)
        return 1

    print(f"📦 {result.name}")
    print(f"💶 {format_price(result.price, result.currency)}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check the current price of a product page")
    parser.add_argument("url", type=str, help="Product page URL")
    parser.add_argument("--selector", type=str, default=None, help="CSS or XPath hint for the price element")
    args = parser.parse_args()

    sys.exit(asyncio.run(async_main(args.url, args.selector)))
