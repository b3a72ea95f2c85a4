"""
ARQ Worker Settings — Registers all background jobs.

Usage:
    arq workers.worker_settings.WorkerSettings
"""

from __future__ import annotations

import logging

from arq import cron
from arq.connections import RedisSettings

from core.config import settings

logger = logging.getLogger(__name__)


async def run_price_monitor(ctx: dict) -> dict:
    """ARQ job: Re-check every tracked product."""
    from workers.price_monitor.orchestrator import run_price_monitor as _run
    return await _run(ctx)


async def startup(ctx: dict) -> None:
    """Called on worker startup."""
    logger.info("Price monitor worker started (max %d concurrent checks)", settings.max_concurrent_checks)


async def shutdown(ctx: dict) -> None:
    """Called on worker shutdown."""
    logger.info("Price monitor worker stopped")


class WorkerSettings:
    """ARQ worker configuration."""

    functions = [
        run_price_monitor,
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = RedisSettings.from_dsn(settings.redis_url)

    # Cron schedule
    cron_jobs = [
        # Price monitor: every 6 hours
        cron(run_price_monitor, hour={0, 6, 12, 18}, minute={0}),
    ]
