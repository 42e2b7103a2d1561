"""Scorecard — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Meta API ──
    meta_access_token: str = ""
    meta_ad_account_id: str = ""
    meta_api_version: str = "v23.0"
    meta_base_url: str = "https://graph.facebook.com"

    # ── Database ──
    database_url: str = ""

    # ── App ──
    log_level: str = "INFO"
    scheduler_enabled: bool = True
    refresh_hour: int = 3  # Nightly scorecard refresh at 3 AM UTC

    # ── Insights Engine ──
    freshness_horizon_days: int = 7  # Days before today never served from cache
    insights_page_limit: int = 2000
    cache_hash_includes_metric_keys: bool = True

    @property
    def effective_database_url(self) -> str:
        """Return PostgreSQL URL if set, otherwise fall back to SQLite."""
        if self.database_url:
            if self.database_url.startswith("postgres://"):
                return self.database_url.replace("postgres://", "postgresql://", 1)
            return self.database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/scorecard.db"
        return "sqlite:///./scorecard.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
