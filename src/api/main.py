"""
FastAPI application entry point.

Health check, product tracking endpoints and manual price checks.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.routes.prices import router as prices_router
from api.routes.products import router as products_router
from core.config import settings
from core.database import init_models
from workers.price_monitor.fetcher import FetchBlocked, FetchNetworkError, FetchTimeout
from workers.price_monitor.orchestrator import ExtractionFailed

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: startup/shutdown events."""
    # Local SQLite installs have no migration step
    if settings.database_url.startswith("sqlite"):
        await init_models()
    yield


app = FastAPI(
    title="Price Drop Tracker",
    description="Tracks e-shop product prices and alerts on drops",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ────────────────────────────────────────────────────────────
app.include_router(products_router)
app.include_router(prices_router)


# ── Error mapping ─────────────────────────────────────────────────────

@app.exception_handler(FetchTimeout)
async def fetch_timeout_handler(request: Request, exc: FetchTimeout) -> JSONResponse:
    return JSONResponse(status_code=408, content={"detail": exc.message})


@app.exception_handler(FetchBlocked)
async def fetch_blocked_handler(request: Request, exc: FetchBlocked) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.exception_handler(FetchNetworkError)
async def fetch_network_handler(request: Request, exc: FetchNetworkError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.exception_handler(ExtractionFailed)
async def extraction_failed_handler(request: Request, exc: ExtractionFailed) -> JSONResponse:
    logger.info("Extraction failed for %s: %s", exc.url, exc.failure.message)
    return JSONResponse(status_code=422, content={"detail": exc.failure.message})


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "service": "price-drop-tracker"}
