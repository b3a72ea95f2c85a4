"""Shared fixtures: in-memory database and fake HTTP transports."""

from __future__ import annotations

import os

# Settings are read at import time; pin them before any app module loads
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SLACK_WEBHOOK_URL"] = ""
os.environ["SWITCH_CURRENCY"] = "false"
os.environ["ALERTS_ENABLED"] = "true"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.database import init_models


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def serve_pages():
    """
    Build an httpx.MockTransport from {url: html | status_code}.

    The returned transport records requested URLs in `transport.requested`.
    Unknown URLs answer 404.
    """

    def _build(pages: dict[str, str | int]) -> httpx.MockTransport:
        requested: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            requested.append(url)
            body = pages.get(url, 404)
            if isinstance(body, int):
                return httpx.Response(body, text="")
            return httpx.Response(200, text=body, headers={"Content-Type": "text/html; charset=utf-8"})

        transport = httpx.MockTransport(handler)
        transport.requested = requested
        return transport

    return _build
