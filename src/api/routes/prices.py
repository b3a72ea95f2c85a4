"""Price check API — One-off checks and manual batch runs."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from workers.price_monitor.models import ExtractionResult
from workers.price_monitor.orchestrator import check_all_products, check_url

router = APIRouter(prefix="/api", tags=["prices"])


# ── Request/Response Schemas ──────────────────────────────────────────

class CheckPriceRequest(BaseModel):
    url: str
    selector: Optional[str] = None


class CheckPriceResponse(BaseModel):
    name: str
    price: float
    currency: str


class CheckSummary(BaseModel):
    successes: int
    failures: int
    price_drops: int


# ── Endpoints ─────────────────────────────────────────────────────────

@router.post("/check-price", response_model=CheckPriceResponse)
async def check_price(req: CheckPriceRequest):
    """Fetch a page and report its name and price without tracking it."""
    url = req.url.strip()
    if not url.startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="URL must start with http:// or https://")

    result = await check_url(url, req.selector or None)
    if not isinstance(result, ExtractionResult):
        raise HTTPException(status_code=422, detail=result.message)
    return CheckPriceResponse(name=result.name, price=result.price, currency=result.currency.value)


@router.post("/check-prices", response_model=CheckSummary)
async def check_prices(session: AsyncSession = Depends(get_db)):
    """Re-check every tracked product now."""
    return await check_all_products(session)
