"""
Configuration management with pydantic-settings.

All environment variables are validated at startup. Defaults target a
single-user install: a local SQLite file and no alert channel.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Database ──────────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+aiosqlite:///./price_tracker.db",
        description="Async connection string (sqlite+aiosqlite://... or postgresql+asyncpg://...)",
    )
    database_url_sync: str = Field(
        default="",
        description="Sync connection string for Alembic (sqlite:///... or postgresql://...)",
    )

    # ── Redis / ARQ ───────────────────────────────────────────────────
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection string for ARQ workers.",
    )

    # ── Fetching ──────────────────────────────────────────────────────
    request_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Per-request timeout in seconds.",
    )
    max_redirects: int = Field(default=5, ge=0)
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/124.0.0.0 Safari/537.36"
        ),
    )
    accept_language: str = Field(default="sk-SK,sk;q=0.9,en-US;q=0.8,en;q=0.7")

    # ── Extraction ────────────────────────────────────────────────────
    preferred_currency: str = Field(
        default="EUR",
        description="Currency the currency-switch pre-step looks for (EUR or CZK).",
    )
    switch_currency: bool = Field(
        default=False,
        description="Follow an in-page currency switch link before extracting.",
    )

    # ── Price monitor ─────────────────────────────────────────────────
    max_concurrent_checks: int = Field(
        default=5,
        ge=1,
        description="How many products are fetched at once during a re-check.",
    )

    # ── Notifications ─────────────────────────────────────────────────
    alerts_enabled: bool = Field(
        default=True,
        description="Master switch for price drop alerts.",
    )
    slack_webhook_url: str = Field(
        default="",
        description="Slack incoming webhook URL for price drop alerts.",
    )


# Singleton instance, import this everywhere
settings = Settings()
