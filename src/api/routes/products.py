"""Products API — Tracked products and their price history."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from core.database import get_db
from workers.price_monitor.orchestrator import (
    add_product,
    delete_product,
    get_product,
    list_price_history,
    list_products,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


# ── Request/Response Schemas ──────────────────────────────────────────

class ProductCreate(BaseModel):
    url: str
    price_selector: Optional[str] = None
    name: Optional[str] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    url: str
    price_selector: str | None
    name: str
    current_price: float
    previous_price: float | None
    currency: str
    last_checked: datetime
    created_at: datetime | None


class PriceHistoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    price: float
    currency: str
    recorded_at: datetime


# ── Endpoints ─────────────────────────────────────────────────────────

@router.get("", response_model=list[ProductOut])
async def get_products(session: AsyncSession = Depends(get_db)):
    """List all tracked products, oldest first."""
    return await list_products(session)


@router.post("", response_model=ProductOut, status_code=201)
async def create_product(
    req: ProductCreate,
    session: AsyncSession = Depends(get_db),
):
    """
    Start tracking a product.

    The page is fetched and parsed immediately; fetch and extraction
    failures are reported as errors and nothing is stored.
    """
    url = req.url.strip()
    if not url.startswith(("http://", "https://")):
        raise HTTPException(status_code=400, detail="URL must start with http:// or https://")
    return await add_product(session, url, selector=req.price_selector or None, name=req.name)


@router.get("/{product_id}", response_model=ProductOut)
async def get_single_product(product_id: str, session: AsyncSession = Depends(get_db)):
    product = await get_product(session, product_id)
    if product is None:
        raise HTTPException(status_code=404, detail=f"Product '{product_id}' not found")
    return product


@router.delete("/{product_id}", status_code=204)
async def remove_product(product_id: str, session: AsyncSession = Depends(get_db)) -> None:
    """Stop tracking a product. Its history is deleted with it."""
    if not await delete_product(session, product_id):
        raise HTTPException(status_code=404, detail=f"Product '{product_id}' not found")


@router.get("/{product_id}/history", response_model=list[PriceHistoryOut])
async def get_history(product_id: str, session: AsyncSession = Depends(get_db)):
    """Price history of a product, oldest first."""
    if await get_product(session, product_id) is None:
        raise HTTPException(status_code=404, detail=f"Product '{product_id}' not found")
    return await list_price_history(session, product_id)
