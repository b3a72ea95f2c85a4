"""Smoke test: Track a product and trigger a Price Monitor run."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.database import async_session_factory, init_models  # noqa: E402
from workers.price_monitor.orchestrator import add_product, list_products, run_price_monitor  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s")

DEFAULT_URL = "https://www.alza.sk/apple-airpods-pro-2-gen-usb-c-d7766590.htm"


async def main(url: str) -> None:
    print("🚀 Starting Smoke Test: Price Monitor Pipeline")
    await init_models()

    async with async_session_factory() as session:
        # 1. Ensure the product is tracked
        tracked = {product.url for product in await list_products(session)}
        if url not in tracked:
            print(f"  ➕ Tracking {url} ...")
            product = await add_product(session, url)
            await session.commit()
            print(f"  ✅ {product.name}: {product.current_price} {product.currency}")

    # 2. Trigger Orchestrator
    print("\n🔍 Running Orchestrator...")
    result = await run_price_monitor({})

    print(f"\n🏁 Finished: {result}")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_URL))
